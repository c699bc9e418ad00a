"""Indexing backend API client."""

from __future__ import annotations

import asyncio
import logging
import mimetypes
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

import httpx
from pydantic import ValidationError

from sitegrip.adapters.indexing.auth import ANONYMOUS_USER_ID, build_token_provider
from sitegrip.adapters.indexing.models import (
    BackendEntry,
    CheckStatusRequest,
    DashboardData,
    IndexingStats,
    QuotaInfo,
    StatusUpdateResponse,
    SubmitUrlsRequest,
    SubmitUrlsResponse,
)
from sitegrip.adapters.indexing.parsing import parse_check_status_payload
from sitegrip.core.async_utils import raise_if_cancelled
from sitegrip.core.backoff import calculate_retry_delay
from sitegrip.core.logging_utils import truncate_log_content
from sitegrip.core.url_utils import validate_url
from sitegrip.domain.exceptions import (
    IndexingApiError,
    IndexingAuthError,
    IndexingRetryableError,
    InvalidEntryError,
    MalformedResponseError,
)
from sitegrip.domain.models.entry import EntryPriority

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence
    from typing import Self

    from sitegrip.adapters.indexing.auth import TokenProvider
    from sitegrip.config import IndexingApiConfig
    from sitegrip.domain.models.entry import IndexingEntry
    from sitegrip.domain.models.reconciliation import StatusRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

# HTTP status codes that should trigger a retry
RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}
AUTH_STATUS_CODES = {401, 403}

DEFAULT_MAX_RETRIES = 2
DEFAULT_BASE_DELAY = 0.5  # seconds
DEFAULT_MAX_DELAY = 10.0  # seconds

# Google's inspection quota makes the backend reject larger status batches
MAX_STATUS_BATCH_SIZE = 10

DASHBOARD_RECENT_ENTRIES = 50


def _is_retryable_error(exc: Exception) -> bool:
    if isinstance(exc, IndexingRetryableError):
        return True
    return isinstance(exc, httpx.TransportError)


async def retry_with_backoff(
    func: Callable[[], Awaitable[T]],
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    operation_name: str = "operation",
) -> T:
    """Execute an async function, retrying transient failures with backoff.

    Args:
        func: Async function to execute
        max_retries: Maximum number of retry attempts
        base_delay: Base delay between retries in seconds
        max_delay: Maximum delay between retries
        operation_name: Name of operation for logging

    Returns:
        Result of the function

    Raises:
        IndexingApiError: If retries are exhausted
    """
    for attempt in range(max_retries + 1):
        try:
            return await func()
        except Exception as e:
            raise_if_cancelled(e)
            if not _is_retryable_error(e):
                raise

            if attempt == max_retries:
                logger.error(
                    "indexing_api_retry_exhausted",
                    extra={
                        "operation": operation_name,
                        "attempts": attempt + 1,
                        "error": str(e),
                    },
                )
                status_code = getattr(e, "status_code", None)
                raise IndexingApiError(
                    f"{operation_name} failed after {attempt + 1} attempts: {e}",
                    status_code=status_code,
                ) from e

            delay = calculate_retry_delay(attempt, base_delay, max_delay)
            logger.warning(
                "indexing_api_retry_attempt",
                extra={
                    "operation": operation_name,
                    "attempt": attempt + 1,
                    "max_retries": max_retries,
                    "delay_seconds": round(delay, 2),
                    "error": str(e),
                },
            )
            await asyncio.sleep(delay)

    # Unreachable: the loop either returns or raises
    raise IndexingApiError(f"{operation_name} failed")


class IndexingApiClient:
    """Async HTTP client for the indexing backend."""

    # Default per-endpoint timeouts (seconds)
    DEFAULT_TIMEOUTS: dict[str, float] = {
        "check_status": 60.0,
        "submit_urls": 60.0,
        "submit_file": 120.0,
        "get_entries": 30.0,
        "get_quota": 15.0,
        "get_statistics": 15.0,
        "update_status": 15.0,
        "delete_entry": 15.0,
        "health_check": 10.0,
    }

    def __init__(
        self,
        api_url: str,
        token_provider: TokenProvider,
        timeout: float = 30.0,
        *,
        user_id: str | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_base_delay: float = DEFAULT_BASE_DELAY,
        retry_max_delay: float = DEFAULT_MAX_DELAY,
        endpoint_timeouts: dict[str, float] | None = None,
        error_body_limit: int = 300,
        max_batch_size: int = MAX_STATUS_BATCH_SIZE,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_url: Base URL of the indexing backend
            token_provider: Source of the bearer token, asked before every call
            timeout: Default request timeout in seconds
            user_id: User id for submission and listing calls (defaults to the provider's)
            max_retries: Maximum number of retry attempts for transient failures
            retry_base_delay: Base delay between retries in seconds
            retry_max_delay: Maximum delay between retries in seconds
            endpoint_timeouts: Custom per-endpoint timeouts (overrides defaults)
            error_body_limit: Maximum characters of an error response kept in messages
            max_batch_size: Maximum URLs accepted by one status check
            transport: Optional httpx transport, used by tests
        """
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self.retry_max_delay = retry_max_delay
        self.endpoint_timeouts = {**self.DEFAULT_TIMEOUTS}
        if endpoint_timeouts:
            self.endpoint_timeouts.update(endpoint_timeouts)
        self._token_provider = token_provider
        self._user_id = user_id
        self.error_body_limit = error_body_limit
        self.max_batch_size = max_batch_size
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_config(
        cls,
        config: IndexingApiConfig,
        *,
        error_body_limit: int = 300,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> IndexingApiClient:
        provider = build_token_provider(
            config.api_token, config.token_cache_path, user_id=config.user_id
        )
        return cls(
            config.api_url,
            provider,
            timeout=config.timeout_sec,
            user_id=config.user_id,
            max_retries=config.max_retries,
            error_body_limit=error_body_limit,
            transport=transport,
        )

    @property
    def user_id(self) -> str:
        if self._user_id:
            return self._user_id
        return str(getattr(self._token_provider, "user_id", None) or ANONYMOUS_USER_ID)

    def get_timeout(self, endpoint: str) -> float:
        """Get timeout for a specific endpoint."""
        return self.endpoint_timeouts.get(endpoint, self.timeout)

    async def __aenter__(self) -> Self:
        self._client = httpx.AsyncClient(
            base_url=self.api_url,
            timeout=self.timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise IndexingApiError("Client not initialized. Use async context manager.")
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        *,
        endpoint: str,
        json: Any | None = None,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
    ) -> httpx.Response:
        timeout = self.get_timeout(endpoint)

        async def _send() -> httpx.Response:
            token = await self._token_provider.get_token()
            response = await self.client.request(
                method,
                path,
                json=json,
                params=params,
                data=data,
                files=files,
                headers={"Authorization": f"Bearer {token}"},
                timeout=timeout,
            )
            if response.is_success:
                return response

            body = truncate_log_content(response.text, self.error_body_limit)
            message = f"API Error {response.status_code}: {body}"
            if response.status_code in AUTH_STATUS_CODES:
                raise IndexingAuthError(message, status_code=response.status_code)
            if response.status_code in RETRYABLE_STATUS_CODES:
                raise IndexingRetryableError(message, status_code=response.status_code)
            raise IndexingApiError(message, status_code=response.status_code)

        return await retry_with_backoff(
            _send,
            max_retries=self.max_retries,
            base_delay=self.retry_base_delay,
            max_delay=self.retry_max_delay,
            operation_name=endpoint,
        )

    @staticmethod
    def _decode_json(response: httpx.Response, endpoint: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponseError(
                f"{endpoint}: response was not valid JSON",
                status_code=response.status_code,
            ) from exc

    async def check_status(self, urls: Sequence[str]) -> list[StatusRecord | None]:
        """Check the current indexing status of a small group of URLs.

        Args:
            urls: URLs previously submitted for indexing

        Returns:
            One slot per URL; ``None`` where the backend returned no valid record

        Raises:
            IndexingAuthError: On missing credentials or 401/403
            IndexingApiError: On other HTTP failures or exhausted retries
            MalformedResponseError: If the body does not carry a ``results`` list
        """
        if not urls:
            return []
        if len(urls) > self.max_batch_size:
            msg = f"At most {self.max_batch_size} URLs can be checked per call"
            raise ValueError(msg)

        request = CheckStatusRequest(urls=list(urls))
        started = time.perf_counter()
        response = await self._request(
            "POST",
            "/api/indexing/check-status",
            endpoint="check_status",
            json=request.model_dump(),
        )
        payload = self._decode_json(response, "check_status")
        records = parse_check_status_payload(payload, urls)
        logger.debug(
            "indexing_status_checked",
            extra={
                "url_count": len(urls),
                "latency_ms": round((time.perf_counter() - started) * 1000, 1),
            },
        )
        return records

    async def submit_urls(
        self,
        urls: Sequence[str],
        project_id: str,
        priority: EntryPriority | str = EntryPriority.MEDIUM,
    ) -> SubmitUrlsResponse:
        """Submit URLs to the indexing API.

        Raises:
            InvalidEntryError: If no URLs are given or any URL is not http(s)
        """
        cleaned = [url.strip() for url in urls if isinstance(url, str) and url.strip()]
        if not cleaned:
            raise InvalidEntryError("Please provide at least one URL")
        invalid = [url for url in cleaned if not validate_url(url)]
        if invalid:
            raise InvalidEntryError("Invalid URLs submitted", details={"invalid_urls": invalid})

        request = SubmitUrlsRequest(
            urls=cleaned, priority=EntryPriority(priority), project_id=project_id
        )
        response = await self._request(
            "POST",
            "/api/index/submit",
            endpoint="submit_urls",
            json=request.model_dump(mode="json"),
            params={"user_id": self.user_id},
        )
        result = SubmitUrlsResponse.model_validate(self._decode_json(response, "submit_urls"))
        logger.info(
            "indexing_urls_submitted",
            extra={
                "project_id": project_id,
                "submitted": result.successful_submissions,
                "failed": result.failed_submissions,
            },
        )
        return result

    async def submit_urls_from_file(
        self,
        path: str | Path,
        project_id: str,
        priority: EntryPriority | str = EntryPriority.MEDIUM,
    ) -> SubmitUrlsResponse:
        """Upload a file of URLs for indexing as a multipart form.

        The backend parses the file itself, so its contents are sent as is.

        Raises:
            InvalidEntryError: If the file cannot be read
        """
        file_path = Path(path)
        try:
            content = file_path.read_bytes()
        except OSError as exc:
            raise InvalidEntryError(
                f"Cannot read URL file: {file_path}", details={"path": str(file_path)}
            ) from exc

        content_type = mimetypes.guess_type(file_path.name)[0] or "text/plain"
        response = await self._request(
            "POST",
            "/api/index/submit-file",
            endpoint="submit_file",
            data={"priority": EntryPriority(priority).value, "project_id": project_id},
            files={"file": (file_path.name, content, content_type)},
            params={"user_id": self.user_id},
        )
        result = SubmitUrlsResponse.model_validate(self._decode_json(response, "submit_file"))
        logger.info(
            "indexing_file_submitted",
            extra={
                "project_id": project_id,
                "file": file_path.name,
                "submitted": result.successful_submissions,
                "failed": result.failed_submissions,
            },
        )
        return result

    async def get_entries(
        self,
        project_id: str | None = None,
        status: str | None = None,
        limit: int = 100,
    ) -> list[IndexingEntry]:
        params: dict[str, Any] = {"limit": limit, "user_id": self.user_id}
        if project_id:
            params["project_id"] = project_id
        if status:
            params["status"] = status

        response = await self._request(
            "GET", "/api/index/entries", endpoint="get_entries", params=params
        )
        payload = self._decode_json(response, "get_entries")
        raw_entries = payload.get("entries") if isinstance(payload, dict) else payload
        if not isinstance(raw_entries, list):
            raise MalformedResponseError("get_entries: expected a list of entries")

        entries: list[IndexingEntry] = []
        for index, raw in enumerate(raw_entries):
            try:
                entries.append(BackendEntry.model_validate(raw).to_domain())
            except ValidationError as exc:
                logger.warning(
                    "indexing_entry_rejected", extra={"index": index, "error": str(exc)}
                )
        return entries

    async def get_quota(self, project_id: str) -> QuotaInfo:
        response = await self._request(
            "GET",
            "/api/index/quota",
            endpoint="get_quota",
            params={"project_id": project_id, "user_id": self.user_id},
        )
        return QuotaInfo.model_validate(self._decode_json(response, "get_quota"))

    async def get_statistics(self, project_id: str) -> IndexingStats:
        response = await self._request(
            "GET",
            "/api/index/stats",
            endpoint="get_statistics",
            params={"project_id": project_id, "user_id": self.user_id},
        )
        return IndexingStats.model_validate(self._decode_json(response, "get_statistics"))

    async def update_status(
        self,
        entry_id: str,
        status: str,
        error_message: str | None = None,
    ) -> StatusUpdateResponse:
        """Manually set the submission status of an entry."""
        body: dict[str, str] = {"status": status}
        if error_message:
            body["error_message"] = error_message
        response = await self._request(
            "PUT",
            f"/api/index/entries/{entry_id}/status",
            endpoint="update_status",
            json=body,
        )
        return StatusUpdateResponse.model_validate(self._decode_json(response, "update_status"))

    async def delete_entry(self, entry_id: str) -> None:
        await self._request(
            "DELETE", f"/api/index/entries/{entry_id}", endpoint="delete_entry"
        )
        logger.info("indexing_entry_deleted", extra={"entry_id": entry_id})

    async def health_check(self) -> bool:
        """Check if the backend is reachable; never raises."""
        try:
            response = await self.client.get("/health", timeout=self.get_timeout("health_check"))
        except httpx.HTTPError as e:
            logger.warning("indexing_health_check_failed", extra={"error": str(e)})
            return False
        return response.is_success

    async def get_dashboard_data(self, project_id: str) -> DashboardData:
        """Fetch statistics, quota and recent entries concurrently.

        A failing part is logged and replaced by ``None`` (or an empty list).
        """

        async def _or_default(coro: Awaitable[T], default: T, part: str) -> T:
            try:
                return await coro
            except Exception as exc:
                raise_if_cancelled(exc)
                logger.warning(
                    "dashboard_part_failed",
                    extra={"part": part, "project_id": project_id, "error": str(exc)},
                )
                return default

        statistics, quota, recent_entries = await asyncio.gather(
            _or_default(self.get_statistics(project_id), None, "statistics"),
            _or_default(self.get_quota(project_id), None, "quota"),
            _or_default(
                self.get_entries(project_id, limit=DASHBOARD_RECENT_ENTRIES), [], "entries"
            ),
        )
        return DashboardData(statistics=statistics, quota=quota, recent_entries=recent_entries)
