"""Error types reported by the compression planner."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ErrorCode(StrEnum):
    """Constrained set of planner error codes."""

    UNKNOWN_FORMAT = "unknown_format"
    UNKNOWN_TAG = "unknown_tag"
    MISSING_OUTPUT_ROOT = "missing_output_root"


class ConfigurationError(ValueError):
    """Raised when planner inputs name something the planner cannot honor."""

    def __init__(self, message: str, code: ErrorCode) -> None:
        self.code = code
        super().__init__(message)

    def to_record(self) -> PlanError:
        return PlanError(code=self.code, message=str(self))


@dataclass(frozen=True)
class PlanError:
    """Structured error record returned alongside a failed plan.

    Planning is a pure computation, so records carry no file or line.
    """

    code: ErrorCode
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code.value, "message": self.message}
