"""Uniform success/failure wrapper returned from every async boundary."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    TRANSPORT = "transport"
    API_ERROR = "api_error"
    NOT_FOUND = "not_found"
    STORAGE = "storage"


class EventsAroundError(Exception):
    """Base class for errors raised inside the package."""


class StorageError(EventsAroundError):
    """A persistent store could not complete a read or write."""


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap_or(self, default: T) -> T:
        return self.value


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str
    status: int | None = None
    #: Machine-readable reason, e.g. "InvalidKeyword" for validation failures.
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return False

    def unwrap_or(self, default: T) -> T:
        return default


FetchResult = Union[Success[T], Failure]
