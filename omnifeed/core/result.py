"""Tagged success/failure values returned by operations that can fail per item.

Callers branch on ``isinstance(r, Ok)`` / ``isinstance(r, Err)`` instead of catching.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")

@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

@dataclass(frozen=True)
class Err(Generic[E]):
    error: E

Result = Union[Ok[T], Err[E]]
