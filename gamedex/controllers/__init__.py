from .sync_progress_tracker import LoadingState

__all__ = ["LoadingState"]
