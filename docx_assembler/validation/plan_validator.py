"""Validate JSON-like document plans against a loaded :class:`RuleSet`.

pydantic does the per-node constraint checking: every component contract in
the rule set is compiled into a strict, closed model. The walk over the plan
tree, path bookkeeping and document-wide rules (occurrence bounds, non-empty
body, nesting limits) live here. All violations are accumulated; nothing is
raised to the caller.
"""
from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Sequence, Tuple, Type, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, StringConstraints, create_model
from pydantic import ValidationError as PydanticValidationError

from docx_assembler.model.plan_model import CHILDREN_KEY
from docx_assembler.model.validation_model import ValidationError, ValidationResult
from docx_assembler.utils.logger import get_logger
from docx_assembler.validation.rules_loader import ComponentRule, PropRule, RuleSet

LOGGER = get_logger(__name__)

_TYPE_MAP: Dict[str, type] = {"string": str, "integer": int, "number": float, "boolean": bool}


class DocPropsShape(BaseModel):
    model_config = ConfigDict(extra="allow", strict=True)

    filename: Optional[str] = None


class PlanEnvelope(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    doc_props: Optional[Dict[str, Any]] = None
    body: List[Any]


class NodeShape(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    component: str
    props: Dict[str, Any]


def format_path(base: str, loc: Sequence[Union[str, int]] = ()) -> str:
    """Render a structured location as ``body[2].props.test_result``."""
    path = base
    for part in loc:
        if isinstance(part, int):
            path = f"{path}[{part}]"
        else:
            path = f"{path}.{part}" if path else str(part)
    return path or "root"


def _pattern_check(pattern: str):
    compiled = re.compile(pattern)

    def _check(value: str) -> str:
        if compiled.fullmatch(value) is None:
            raise ValueError(f"must match pattern {pattern!r}")
        return value

    return _check


def _annotation_for(rule: PropRule) -> Any:
    if rule.enum is not None:
        return Literal[tuple(rule.enum)]
    base = _TYPE_MAP[rule.type]
    if base is not str:
        return base
    metadata: List[Any] = []
    if rule.min_length is not None or rule.max_length is not None:
        metadata.append(StringConstraints(min_length=rule.min_length, max_length=rule.max_length))
    if rule.pattern is not None:
        metadata.append(AfterValidator(_pattern_check(rule.pattern)))
    if not metadata:
        return str
    return Annotated[(str, *metadata)]


def compile_props_model(name: str, rule: ComponentRule) -> Type[BaseModel]:
    """Build the closed pydantic model enforcing one component's prop contract."""
    fields: Dict[str, Tuple[Any, Any]] = {}
    for prop_name, prop_rule in rule.props.items():
        annotation = _annotation_for(prop_rule)
        if prop_rule.required:
            fields[prop_name] = (annotation, ...)
        else:
            fields[prop_name] = (Optional[annotation], None)
    return create_model(
        f"{name}Props",
        __config__=ConfigDict(extra="forbid", strict=True),
        **fields,
    )


@dataclass
class _WalkState:
    errors: List[ValidationError] = field(default_factory=list)
    counts: Counter = field(default_factory=Counter)
    occurrences: Dict[str, List[str]] = field(default_factory=dict)
    nodes: int = 0


class PlanValidator:
    """Validator parameterized by one immutable rule set per process."""

    def __init__(self, rules: RuleSet) -> None:
        self._rules = rules
        self._props_models: Dict[str, Type[BaseModel]] = {
            name: compile_props_model(name, rule) for name, rule in rules.components.items()
        }

    @classmethod
    def from_file(cls, rules_path: Union[str, Path]) -> "PlanValidator":
        return cls(RuleSet.load(rules_path))

    @property
    def rules(self) -> RuleSet:
        return self._rules

    def component_names(self) -> List[str]:
        return self._rules.component_names()

    def validate(self, plan: Any) -> ValidationResult:
        """Check ``plan`` against every rule; never mutates it and never raises."""
        try:
            return self._validate(plan)
        except Exception as exc:  # noqa: BLE001
            LOGGER.exception("Plan validation failed unexpectedly")
            return ValidationResult.internal_failure(f"internal validation error: {exc}")

    # ------------------------------------------------------------------
    # Internal walk
    def _validate(self, plan: Any) -> ValidationResult:
        if not isinstance(plan, Mapping):
            return ValidationResult.internal_failure("plan must be a JSON object")

        state = _WalkState()
        try:
            envelope = PlanEnvelope.model_validate(dict(plan))
        except PydanticValidationError as exc:
            self._collect(state, "", exc)
            envelope = None

        doc_props = plan.get("doc_props")
        if isinstance(doc_props, Mapping):
            try:
                DocPropsShape.model_validate(dict(doc_props))
            except PydanticValidationError as exc:
                self._collect(state, "doc_props", exc)

        body = envelope.body if envelope is not None else plan.get("body")
        if isinstance(body, list):
            if not body and self._rules.document.require_non_empty_body:
                state.errors.append(ValidationError("body", "body must contain at least one component"))
            for index, node in enumerate(body):
                self._validate_node(node, format_path("body", [index]), 1, state)
            self._check_document_rules(state)

        if state.errors:
            LOGGER.debug("Plan rejected with %d error(s)", len(state.errors))
        return ValidationResult.from_errors(state.errors)

    def _validate_node(self, node: Any, path: str, depth: int, state: _WalkState) -> None:
        state.nodes += 1
        try:
            shape = NodeShape.model_validate(node)
        except PydanticValidationError as exc:
            self._collect(state, path, exc)
            return

        name = shape.component
        rule = self._rules.components.get(name)
        if rule is None:
            known = ", ".join(self.component_names()) or "<none>"
            state.errors.append(
                ValidationError(f"{path}.component", f"unknown component {name!r}; expected one of: {known}")
            )
            return

        state.counts[name] += 1
        state.occurrences.setdefault(name, []).append(path)

        props = dict(shape.props)
        children = props.pop(CHILDREN_KEY, None) if rule.accepts_children else None
        try:
            self._props_models[name].model_validate(props)
        except PydanticValidationError as exc:
            self._collect(state, f"{path}.props", exc)

        if children is None:
            return
        children_path = f"{path}.props.{CHILDREN_KEY}"
        if not isinstance(children, list):
            state.errors.append(ValidationError(children_path, "children must be a list of components"))
            return
        if children and depth >= self._rules.limits.max_depth:
            state.errors.append(
                ValidationError(children_path, f"nesting exceeds the maximum depth of {self._rules.limits.max_depth}")
            )
            return
        for index, child in enumerate(children):
            self._validate_node(child, format_path(children_path, [index]), depth + 1, state)

    def _check_document_rules(self, state: _WalkState) -> None:
        max_nodes = self._rules.limits.max_nodes
        if state.nodes > max_nodes:
            state.errors.append(ValidationError("body", f"plan has {state.nodes} components; the limit is {max_nodes}"))

        for name, occurrence in self._rules.document.occurrences.items():
            found = state.counts.get(name, 0)
            if occurrence.minimum is not None and found < occurrence.minimum:
                state.errors.append(
                    ValidationError("body", f"{name} must appear {occurrence.describe()} (found {found})")
                )
            if occurrence.maximum is not None and found > occurrence.maximum:
                surplus = state.occurrences[name][occurrence.maximum]
                state.errors.append(
                    ValidationError(surplus, f"{name} must appear {occurrence.describe()} (found {found})")
                )

    @staticmethod
    def _collect(state: _WalkState, base: str, exc: PydanticValidationError) -> None:
        for error in exc.errors(include_url=False):
            state.errors.append(ValidationError(format_path(base, error["loc"]), error["msg"]))
