"""Result types for upstream calls."""

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

from rampgate.errors import GatewayError

T = TypeVar("T")


@dataclass(frozen=True)
class UpstreamEnvelope:
    """Raw HTTP response, alive for one round trip."""

    status_code: int
    raw_body: str

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


@dataclass
class UpstreamResult(Generic[T]):
    """Outcome of an upstream call.

    Attributes:
        success: Whether the call produced usable data
        data: Parsed (and possibly normalized) payload
        status_code: HTTP status, if a response arrived at all
        error: Typed error if the call failed
    """

    success: bool
    data: Optional[T] = None
    status_code: Optional[int] = None
    error: Optional[GatewayError] = None

    @classmethod
    def ok(cls, data: T, status_code: int = 200) -> "UpstreamResult[T]":
        return cls(success=True, data=data, status_code=status_code)

    @classmethod
    def fail(cls, error: GatewayError, status_code: Optional[int] = None) -> "UpstreamResult[Any]":
        return cls(success=False, error=error, status_code=status_code)

    def unwrap(self) -> T:
        """Return the data or raise the typed error."""
        if not self.success:
            raise self.error or GatewayError("Upstream call failed")
        return self.data
