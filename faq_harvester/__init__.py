"""
FAQ Harvester

Collects question/answer pairs from a fixed list of institutional FAQ pages
and writes them as a JSON dataset.
- Loader: fetches pages (or reads pinned copies) into BeautifulSoup trees
- Adapters: per-source selection, partitioning and entity construction
- Formatter/Sanitizer: answer markup rendering and cleanup
- Aggregator: identity, merge and dataset output

Public API surface:
  Orchestration    — FAQHarvester, HarvesterConfig
  Adapters         — ADAPTERS, get_adapter, ProseAdapter, LinkIndexAdapter, PayloadAdapter
  Data models      — FAQEntity, FAQIndexEntry, RunContext, LoadResult
  Error types      — HarvesterError, FetchError (non-fatal), PayloadError, OutputError
"""

from .main import FAQHarvester
from .config import HarvesterConfig
from .loader import DocumentLoader

from .adapters import ADAPTERS, get_adapter, ProseAdapter, LinkIndexAdapter, PayloadAdapter

from .schemas import FAQEntity, FAQIndexEntry, RunContext, LoadResult, compute_identity

from .exceptions import HarvesterError, FetchError, PayloadError, OutputError

__version__ = "0.1.0"
__all__ = [
    "FAQHarvester",
    "HarvesterConfig",
    "DocumentLoader",
    "ADAPTERS",
    "get_adapter",
    "ProseAdapter",
    "LinkIndexAdapter",
    "PayloadAdapter",
    "FAQEntity",
    "FAQIndexEntry",
    "RunContext",
    "LoadResult",
    "compute_identity",
    "HarvesterError",
    "FetchError",
    "PayloadError",
    "OutputError",
]
