from .cache import MemoryMovieCache, SQLiteMovieCache
from .preferences import JsonPreferenceStore, MemoryPreferenceStore

__all__ = [
    "JsonPreferenceStore",
    "MemoryMovieCache",
    "MemoryPreferenceStore",
    "SQLiteMovieCache",
]
