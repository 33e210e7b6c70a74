"""
Result type: service and route helpers return one instead of raising.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from .types import ErrorCode

T = TypeVar("T")

OK_CODE = "OK"


@dataclass
class Result(Generic[T]):
    """
    Outcome of an operation.

        res = await build_services(dirs)
        if not res.ok:
            logger.error("Folder watcher unavailable: %s", res.error)
        watcher = res.data["watcher"]

    `code` is "OK" on success, otherwise an ErrorCode value. `meta` carries
    extra context (sizes, limits, missing directories...).
    """
    ok: bool
    data: Optional[T] = None
    error: Optional[str] = None
    code: str = OK_CODE
    meta: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def Ok(cls, data: T, **meta: Any) -> "Result[T]":
        return cls(ok=True, data=data, meta=meta)

    @classmethod
    def Err(cls, code: ErrorCode | str, error: str, **meta: Any) -> "Result[T]":
        code_value = code.value if isinstance(code, Enum) else code
        return cls(ok=False, error=error, code=str(code_value), meta=meta)

    def unwrap_or(self, default: T) -> T:
        return self.data if self.ok and self.data is not None else default
