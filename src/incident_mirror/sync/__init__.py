from .engine import SyncEngine, iter_windows
from .orchestrator import refresh_from_settings, run_refresh
from .registry import DEFAULT_COLLECTIONS, Collection, get_collection
from .resume import resume_point
from .strategies import FullReplace, ReplaceStrategy, UpsertByPresence

__all__ = [
    "Collection",
    "DEFAULT_COLLECTIONS",
    "FullReplace",
    "ReplaceStrategy",
    "SyncEngine",
    "UpsertByPresence",
    "get_collection",
    "iter_windows",
    "refresh_from_settings",
    "resume_point",
    "run_refresh",
]
