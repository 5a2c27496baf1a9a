"""Error types of the inventory sync"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class FailureCategory(str, Enum):
    RATE_LIMITED = "rate_limited"
    ACCESS_DENIED = "access_denied"
    BAD_REQUEST = "bad_request"
    TRANSIENT = "transient"


_RETRYABLE = {FailureCategory.RATE_LIMITED, FailureCategory.TRANSIENT}


class ExternalSourceError(Exception):
    """A Steam inventory page could not be fetched."""

    def __init__(self, category: FailureCategory, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.category = category
        self.message = message
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.category in _RETRYABLE

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"[{self.category.value} {self.status_code}] {self.message}"
        return f"[{self.category.value}] {self.message}"


class NoDataAvailable(Exception):
    """Live sync failed and there is no stored snapshot to fall back to."""

    def __init__(self, steam_id: str, category: FailureCategory, message: str):
        super().__init__(message)
        self.steam_id = steam_id
        self.category = category
        self.message = message

    def __str__(self) -> str:
        return f"no inventory data for {self.steam_id} ({self.category.value}): {self.message}"
