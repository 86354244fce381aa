"""Declarative plan rule set, loaded once from a JSON rule file.

The rule file describes, per component, an exhaustive property contract plus
document-wide constraints::

    {
      "limits": {"max_depth": 8, "max_nodes": 500},
      "document": {
        "require_non_empty_body": true,
        "occurrences": {"DocumentTitle": {"min": 1, "max": 1}}
      },
      "components": {
        "DocumentTitle": {
          "props": {"document_title": {"type": "string", "min_length": 1}}
        }
      }
    }
"""
from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from docx_assembler.errors import RuleSetError
from docx_assembler.utils.logger import get_logger

LOGGER = get_logger(__name__)

EnumValue = Union[bool, int, float, str]


class PropRule(BaseModel):
    """Constraints for one component property."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    type: Literal["string", "integer", "number", "boolean"] = "string"
    required: bool = True
    min_length: Optional[int] = Field(default=None, ge=0)
    max_length: Optional[int] = Field(default=None, ge=0)
    pattern: Optional[str] = None
    enum: Optional[List[EnumValue]] = None
    description: Optional[str] = None

    @model_validator(mode="after")
    def _check_pattern(self) -> "PropRule":
        if self.pattern is not None:
            try:
                re.compile(self.pattern)
            except re.error as exc:
                raise ValueError(f"invalid pattern {self.pattern!r}: {exc}") from exc
        if self.enum is not None and not self.enum:
            raise ValueError("enum must list at least one value")
        return self


class ComponentRule(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    accepts_children: bool = False
    props: Dict[str, PropRule] = Field(default_factory=dict)
    description: Optional[str] = None

    @model_validator(mode="after")
    def _check_reserved(self) -> "ComponentRule":
        if "children" in self.props:
            raise ValueError("'children' is reserved; use accepts_children instead")
        return self


class OccurrenceRule(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    minimum: Optional[int] = Field(default=None, alias="min", ge=0)
    maximum: Optional[int] = Field(default=None, alias="max", ge=0)

    def describe(self) -> str:
        if self.minimum is not None and self.minimum == self.maximum:
            return "exactly once" if self.minimum == 1 else f"exactly {self.minimum} times"
        if self.maximum is None:
            return f"at least {self.minimum} time(s)"
        if self.minimum is None or self.minimum == 0:
            return f"at most {self.maximum} time(s)"
        return f"between {self.minimum} and {self.maximum} times"


class DocumentRule(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    require_non_empty_body: bool = True
    occurrences: Dict[str, OccurrenceRule] = Field(default_factory=dict)


class Limits(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_depth: int = Field(default=8, ge=1)
    max_nodes: int = Field(default=1000, ge=1)


class RuleSet(BaseModel):
    """Immutable rule set the validator is parameterized with."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    limits: Limits = Field(default_factory=Limits)
    document: DocumentRule = Field(default_factory=DocumentRule)
    components: Dict[str, ComponentRule] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_occurrence_targets(self) -> "RuleSet":
        unknown = sorted(set(self.document.occurrences) - set(self.components))
        if unknown:
            raise ValueError(f"occurrence rules reference undefined components: {', '.join(unknown)}")
        return self

    @classmethod
    def load(cls, rules_path: Union[str, Path]) -> "RuleSet":
        path = Path(rules_path)
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise RuleSetError(f"rule file not found: {path}") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise RuleSetError(f"failed to read rule file {path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise RuleSetError(f"rule file {path} is not valid JSON: {exc}") from exc

        rules = cls.from_dict(payload)
        LOGGER.info("Loaded %d component rule(s) from %s", len(rules.components), path.name)
        return rules

    @classmethod
    def from_dict(cls, payload: object) -> "RuleSet":
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            raise RuleSetError(f"invalid rule set: {exc}") from exc

    def component_names(self) -> List[str]:
        return sorted(self.components)
