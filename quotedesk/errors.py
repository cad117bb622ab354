from __future__ import annotations

from enum import Enum


class UpstreamErrorKind(str, Enum):
    HTTP_ERROR = "HTTP_ERROR"
    PARSE_ERROR = "PARSE_ERROR"
    EMPTY_RESPONSE = "EMPTY_RESPONSE"
    PROVIDER_RATE_LIMITED = "PROVIDER_RATE_LIMITED"


class UpstreamError(Exception):
    """Raised by a quote source when a single fetch cannot produce a quote."""

    def __init__(self, kind: UpstreamErrorKind, detail: str = "") -> None:
        super().__init__(f"{kind.value}: {detail}" if detail else kind.value)
        self.kind = kind
        self.detail = detail


class ConfigurationError(ValueError):
    pass
