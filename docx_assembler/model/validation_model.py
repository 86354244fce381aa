"""Structured validation outcome returned by the plan validator."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence

ROOT_PATH = "root"


@dataclass(frozen=True, slots=True)
class ValidationError:
    """A single rule violation located by a path such as ``body[2].props.test_result``."""

    path: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"path": self.path, "message": self.message}


@dataclass(frozen=True, slots=True)
class ValidationResult:
    valid: bool
    errors: Sequence[ValidationError] = field(default_factory=tuple)

    @classmethod
    def from_errors(cls, errors: List[ValidationError]) -> "ValidationResult":
        return cls(valid=not errors, errors=tuple(errors))

    @classmethod
    def internal_failure(cls, message: str) -> "ValidationResult":
        return cls(valid=False, errors=(ValidationError(path=ROOT_PATH, message=message),))

    def paths(self) -> List[str]:
        return [error.path for error in self.errors]

    def to_dict(self) -> Dict[str, object]:
        """Return the wire representation sent back to callers."""
        return {"valid": self.valid, "errors": [error.to_dict() for error in self.errors]}
