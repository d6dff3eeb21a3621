from .artwork_service import ArtworkService
from .launch_service import LaunchService
from .library_service import LibraryService, ScanResult
from .metadata_service import MetadataRecord, MetadataService
from .resolver_service import Resolution, ResolutionKind, ResolverService

__all__ = [
    "ArtworkService",
    "LaunchService",
    "LibraryService",
    "MetadataRecord",
    "MetadataService",
    "Resolution",
    "ResolutionKind",
    "ResolverService",
    "ScanResult",
]
