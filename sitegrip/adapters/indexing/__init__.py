from sitegrip.adapters.indexing.auth import (
    ANONYMOUS_USER_ID,
    CachedSessionTokenProvider,
    StaticTokenProvider,
    TokenProvider,
    build_token_provider,
)
from sitegrip.adapters.indexing.client import IndexingApiClient, retry_with_backoff
from sitegrip.adapters.indexing.models import (
    DashboardData,
    IndexingStats,
    QuotaInfo,
    SubmitUrlsResponse,
)
from sitegrip.adapters.indexing.parsing import parse_check_status_payload

__all__ = [
    "ANONYMOUS_USER_ID",
    "CachedSessionTokenProvider",
    "DashboardData",
    "IndexingApiClient",
    "IndexingStats",
    "QuotaInfo",
    "StaticTokenProvider",
    "SubmitUrlsResponse",
    "TokenProvider",
    "build_token_provider",
    "parse_check_status_payload",
    "retry_with_backoff",
]
