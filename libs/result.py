"""Result type for use case outcomes

Use cases return Result instead of raising for expected business outcomes.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class Error:
    """Categorized error with a stable code"""
    code: str
    message: str
    reason: Optional[str] = None


@dataclass
class Result(Generic[T]):
    value: Optional[T] = None
    error: Optional[Error] = None

    def is_ok(self) -> bool:
        return self.error is None

    def is_err(self) -> bool:
        return self.error is not None


class Return:
    @staticmethod
    def ok(value: T = None) -> Result[T]:
        return Result(value=value)

    @staticmethod
    def err(error: Error) -> Result:
        return Result(error=error)
