"""Services métier"""

from .alerts import ErrorBanner
from .forms import ConfigField, ConfigFormBuilder
from .session import AuthClient, SessionStore
from .transport import ApiTransport
from .search import SearchClient
from .registry import IndexerRegistry
from .rows import IndexerRowController
from .console import IndexerConsole

__all__ = [
    "ErrorBanner",
    "ConfigField",
    "ConfigFormBuilder",
    "AuthClient",
    "SessionStore",
    "ApiTransport",
    "SearchClient",
    "IndexerRegistry",
    "IndexerRowController",
    "IndexerConsole",
]
