"""Pydantic models for the indexing backend API."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime  # noqa: TC003 - Pydantic needs this at runtime
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, field_validator

from sitegrip.domain.models.entry import (
    EntryPriority,
    GoogleMetadata,
    IndexingEntry,
    IndexingStatus,
)

_LENIENT = {"populate_by_name": True, "extra": "ignore"}


class InspectionResult(BaseModel):
    """Google URL inspection data, flat or wrapped in ``indexStatusResult``."""

    coverage_state: str | None = Field(
        default=None, validation_alias=AliasChoices("coverage_state", "coverageState")
    )
    indexing_state: str | None = Field(
        default=None, validation_alias=AliasChoices("indexing_state", "indexingState")
    )
    last_crawl_time: str | None = Field(
        default=None, validation_alias=AliasChoices("last_crawl_time", "lastCrawlTime")
    )
    google_canonical: str | None = Field(
        default=None, validation_alias=AliasChoices("google_canonical", "googleCanonical")
    )
    page_fetch_state: str | None = Field(
        default=None, validation_alias=AliasChoices("page_fetch_state", "pageFetchState")
    )
    crawled_as: str | None = Field(
        default=None, validation_alias=AliasChoices("crawled_as", "crawledAs")
    )
    index_status_result: InspectionResult | None = Field(
        default=None,
        validation_alias=AliasChoices("index_status_result", "indexStatusResult"),
    )

    model_config = _LENIENT

    def to_metadata(self) -> GoogleMetadata:
        own = GoogleMetadata(
            coverage_state=self.coverage_state,
            indexing_state=self.indexing_state,
            last_crawl_time=self.last_crawl_time,
            google_canonical=self.google_canonical,
            page_fetch_state=self.page_fetch_state,
            crawled_as=self.crawled_as,
        )
        if self.index_status_result is None:
            return own
        return own.merged_with(self.index_status_result.to_metadata())


class IndexingDetails(BaseModel):
    crawled_as: str | None = Field(
        default=None, validation_alias=AliasChoices("crawled_as", "crawledAs")
    )
    page_fetch_state: str | None = Field(
        default=None, validation_alias=AliasChoices("page_fetch_state", "pageFetchState")
    )
    error: str | None = None

    model_config = _LENIENT


class StatusResultItem(InspectionResult):
    """One element of the ``results`` array of a status-check response.

    Metadata may sit at the top level, inside ``inspection_result`` or inside
    ``indexing_details``; nested values win over top-level ones.
    """

    url: str | None = Field(
        default=None, validation_alias=AliasChoices("url", "inspection_url", "inspectionUrl")
    )
    status: str | None = Field(
        default=None,
        validation_alias=AliasChoices("status", "indexing_status", "indexingStatus"),
    )
    inspection: InspectionResult | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "inspection_result", "inspectionResult", "inspection", "result"
        ),
    )
    indexing_details: IndexingDetails | None = Field(
        default=None, validation_alias=AliasChoices("indexing_details", "indexingDetails")
    )
    error: str | None = Field(
        default=None, validation_alias=AliasChoices("error", "error_message", "errorMessage")
    )
    success: bool | None = None

    @field_validator("error", mode="before")
    @classmethod
    def _coerce_error(cls, value: Any) -> str | None:
        if value in (None, "", False):
            return None
        if isinstance(value, dict):
            return str(value.get("message") or value)
        return str(value)

    def to_metadata(self) -> GoogleMetadata:
        metadata = super().to_metadata()
        if self.indexing_details is not None:
            metadata = metadata.merged_with(
                GoogleMetadata(
                    crawled_as=self.indexing_details.crawled_as,
                    page_fetch_state=self.indexing_details.page_fetch_state,
                )
            )
        if self.inspection is not None:
            metadata = metadata.merged_with(self.inspection.to_metadata())
        return metadata

    def error_signal(self) -> str | None:
        if self.error:
            return self.error
        if self.indexing_details is not None and self.indexing_details.error:
            return self.indexing_details.error
        if self.success is False:
            return "Backend reported a failed status check"
        return None


class CheckStatusRequest(BaseModel):
    urls: list[str]


class SubmitUrlsRequest(BaseModel):
    urls: list[str]
    priority: EntryPriority = EntryPriority.MEDIUM
    project_id: str


class SubmitUrlsResponse(BaseModel):
    total_submitted: int = 0
    successful_submissions: int = 0
    failed_submissions: int = 0
    failed_urls: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    model_config = _LENIENT


class QuotaInfo(BaseModel):
    total_daily_limit: int = Field(
        default=0, validation_alias=AliasChoices("total_daily_limit", "daily_limit", "dailyLimit")
    )
    total_used: int = Field(default=0, validation_alias=AliasChoices("total_used", "totalUsed"))
    remaining: int = Field(
        default=0,
        validation_alias=AliasChoices("remaining", "remaining_quota", "remainingQuota"),
    )
    last_updated: datetime | None = Field(
        default=None, validation_alias=AliasChoices("last_updated", "updated_at", "lastUpdated")
    )

    model_config = _LENIENT


class IndexingStats(BaseModel):
    total_urls_submitted: int = Field(
        default=0, validation_alias=AliasChoices("total_urls_submitted", "total_submitted")
    )
    total_urls_indexed: int = Field(
        default=0, validation_alias=AliasChoices("total_urls_indexed", "success")
    )
    total_urls_pending: int = Field(
        default=0, validation_alias=AliasChoices("total_urls_pending", "pending")
    )
    total_urls_error: int = Field(
        default=0, validation_alias=AliasChoices("total_urls_error", "failed")
    )
    indexing_success_rate: float = Field(
        default=0.0, validation_alias=AliasChoices("indexing_success_rate", "success_rate")
    )
    quota_used_percentage: float = 0.0

    model_config = _LENIENT


class BackendEntry(BaseModel):
    """Entry as listed by ``GET /api/index/entries``."""

    id: str | None = None
    url: str
    status: str | None = None
    priority: str | None = None
    submitted_at: datetime | None = None
    domain: str | None = None
    project_id: str | None = None
    user_id: str | None = None
    error_message: str | None = None
    indexing_status: str | None = None
    coverage_state: str | None = None
    indexing_state: str | None = None
    last_crawl_time: str | None = None
    google_canonical: str | None = None
    status_checked_at: datetime | None = None
    indexing_details: IndexingDetails | None = None

    model_config = _LENIENT

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str | None:
        return None if value is None else str(value)

    def to_domain(self) -> IndexingEntry:
        try:
            status = IndexingStatus(str(self.indexing_status or "unknown").strip().lower())
        except ValueError:
            status = IndexingStatus.UNKNOWN
        try:
            priority = EntryPriority(str(self.priority or "medium").lower())
        except ValueError:
            priority = EntryPriority.MEDIUM
        details = self.indexing_details or IndexingDetails()
        return IndexingEntry(
            url=self.url,
            status=status,
            metadata=GoogleMetadata(
                coverage_state=self.coverage_state,
                indexing_state=self.indexing_state,
                last_crawl_time=self.last_crawl_time,
                google_canonical=self.google_canonical,
                page_fetch_state=details.page_fetch_state,
                crawled_as=details.crawled_as,
            ),
            updated_at=self.status_checked_at,
            id=self.id,
            domain=self.domain,
            priority=priority,
            project_id=self.project_id,
            submitted_at=self.submitted_at,
            error_message=self.error_message or details.error,
        )


class StatusUpdateResponse(BaseModel):
    success: bool = True
    message: str = ""

    model_config = _LENIENT


@dataclass(frozen=True)
class DashboardData:
    """Statistics, quota and recent entries for one project."""

    statistics: IndexingStats | None = None
    quota: QuotaInfo | None = None
    recent_entries: list[IndexingEntry] = field(default_factory=list)
