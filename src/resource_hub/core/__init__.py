"""HTTP access to the search index and async helpers."""

from .async_utils import Debouncer, run_sync, run_sync_limited
from .client import MeiliClient

__all__ = ["Debouncer", "MeiliClient", "run_sync", "run_sync_limited"]
