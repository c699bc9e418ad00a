from sitegrip.domain.services.status_normalizer import (
    ERROR_STATUS_LABEL,
    HUMAN_STATUS_LABELS,
    build_details,
    build_error_result,
    build_status_result,
    normalize_status_tag,
)

__all__ = [
    "ERROR_STATUS_LABEL",
    "HUMAN_STATUS_LABELS",
    "build_details",
    "build_error_result",
    "build_status_result",
    "normalize_status_tag",
]
