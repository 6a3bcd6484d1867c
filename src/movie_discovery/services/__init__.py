from .debounce import SearchAction, SearchDebouncer, SearchState
from .offline import CacheSnapshot, OfflineCacheGate
from .paging import PageCursor, PageRequest, RequestGate, RequestTicket
from .pipeline import DiscoveryPipeline
from .view_state import ViewStateBuilder

__all__ = [
    "CacheSnapshot",
    "DiscoveryPipeline",
    "OfflineCacheGate",
    "PageCursor",
    "PageRequest",
    "RequestGate",
    "RequestTicket",
    "SearchAction",
    "SearchDebouncer",
    "SearchState",
    "ViewStateBuilder",
]
