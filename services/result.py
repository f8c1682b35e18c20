"""
Result type for consistent error handling across services.

Services return Result instead of raising for expected failures (bad input,
missing debate, partial payout), so callers can branch on error_code.

Usage:
    return Result.ok(summary)
    return Result.fail("Debate not found", code=DEBATE_NOT_FOUND)

    # A failure can still carry partial output
    return Result.fail("2 payouts failed", code=RESOLUTION_FAILED, value=summary)
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of a service call.

    Attributes:
        success: Whether the operation succeeded
        value: Payload; on failure, optional partial output
        error: Error message if failed
        error_code: Code from services.error_codes if failed
    """

    success: bool
    value: T | None = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def ok(cls, value: T | None = None) -> "Result[T]":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: str, code: str | None = None, value: T | None = None) -> "Result[T]":
        return cls(success=False, value=value, error=error, error_code=code)

    def __bool__(self) -> bool:
        return self.success

    def unwrap(self) -> T:
        """
        Get the value of a successful result.

        Raises:
            ValueError: If the result is a failure
        """
        if not self.success:
            raise ValueError(f"Cannot unwrap failed result: {self.error}")
        return self.value  # type: ignore

    def unwrap_or(self, default: T) -> T:
        return self.value if self.success else default  # type: ignore
