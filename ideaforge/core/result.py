"""Tagged success/failure result threaded through repositories and use cases."""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    error: Exception

    @property
    def ok(self) -> bool:
        return False


Result = Union[Success[T], Failure]


def success(value: T = None) -> Success[T]:
    return Success(value)


def failure(error: Exception) -> Failure:
    return Failure(error)
