"""Game discovery on disk."""
from .scanner import (
    EXECUTABLE_SUFFIXES,
    DirectoryScanner,
    find_executable_candidates,
    find_first_executable,
)

__all__ = [
    "EXECUTABLE_SUFFIXES",
    "DirectoryScanner",
    "find_executable_candidates",
    "find_first_executable",
]
