"""Loading state for scans and bulk cache population.

Exposes the "in progress" flags a front end polls to show a loading state
(scan, metadata backfill, cover prefetch) plus phase-based progress for the
bulk operations.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class LoadingState:
    """Track background work with phase-based percentage tracking.

    Flags are plain booleans; there is no cancellation. Listeners are called
    with the flag name and new value whenever a flag changes.
    """

    # Phase percentage allocations: (start_pct, end_pct)
    PHASE_RANGES = {
        'idle': (0, 0),
        'scanning': (0, 20),
        'resolving': (20, 25),
        'metadata': (25, 65),
        'images': (65, 99),
        'complete': (100, 100),
        'error': (100, 100),
    }

    def __init__(self):
        self.scan_in_progress = False
        self.metadata_loading = False
        self.images_prefetching = False

        self.status = "idle"
        self.error: Optional[str] = None
        self.current_game: Optional[str] = None

        self.metadata_total = 0
        self.metadata_done = 0
        self.images_total = 0
        self.images_done = 0

        self._listeners: List[Callable[[str, bool], None]] = []
        # Counters are bumped from concurrently running prefetch tasks
        self._lock = asyncio.Lock()

    def add_listener(self, callback: Callable[[str, bool], None]):
        self._listeners.append(callback)

    def _set_flag(self, name: str, value: bool):
        if getattr(self, name) == value:
            return
        setattr(self, name, value)
        for callback in self._listeners:
            try:
                callback(name, value)
            except Exception as e:
                logger.warning(f"[Progress] Listener failed for {name}: {e}")

    def set_scanning(self, value: bool):
        self._set_flag('scan_in_progress', value)
        if value:
            self.status = 'scanning'

    def set_resolving(self):
        self.status = 'resolving'

    def set_metadata_loading(self, value: bool, total: int = 0):
        if value:
            self.metadata_total = total
            self.metadata_done = 0
            self.status = 'metadata'
        self._set_flag('metadata_loading', value)

    def set_images_prefetching(self, value: bool, total: int = 0):
        if value:
            self.images_total = total
            self.images_done = 0
            self.status = 'images'
        self._set_flag('images_prefetching', value)

    async def increment_metadata(self, game_name: str) -> int:
        async with self._lock:
            self.metadata_done += 1
            self.current_game = game_name
            return self.metadata_done

    async def increment_images(self, game_name: str) -> int:
        async with self._lock:
            self.images_done += 1
            self.current_game = game_name
            return self.images_done

    @property
    def busy(self) -> bool:
        return self.scan_in_progress or self.metadata_loading or self.images_prefetching

    def finish(self, error: Optional[str] = None):
        """Mark the current run complete (or failed) once every flag is down."""
        self.error = error
        if error:
            self.status = 'error'
        elif not self.busy:
            self.status = 'complete'
        self.current_game = None

    def _calculate_progress(self) -> int:
        """Calculate progress based on current phase and its percentage allocation."""
        start_pct, end_pct = self.PHASE_RANGES.get(self.status, (0, 0))

        if self.status == 'metadata' and self.metadata_total > 0:
            sub_progress = self.metadata_done / self.metadata_total
            return int(start_pct + (end_pct - start_pct) * sub_progress)
        if self.status == 'images' and self.images_total > 0:
            sub_progress = self.images_done / self.images_total
            return int(start_pct + (end_pct - start_pct) * sub_progress)

        return start_pct

    def to_dict(self) -> Dict[str, Any]:
        return {
            'scan_in_progress': self.scan_in_progress,
            'metadata_loading': self.metadata_loading,
            'images_prefetching': self.images_prefetching,
            'status': self.status,
            'progress_percent': self._calculate_progress(),
            'current_game': self.current_game,
            'error': self.error,
            'metadata_total': self.metadata_total,
            'metadata_done': self.metadata_done,
            'images_total': self.images_total,
            'images_done': self.images_done,
        }
