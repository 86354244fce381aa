"""Typed, immutable view of a document plan."""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

CHILDREN_KEY = "children"
DEFAULT_FILENAME = "generated_document.docx"


@dataclass(frozen=True, slots=True)
class DocProps:
    """Document-level metadata supplied alongside the body."""

    filename: Optional[str] = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> "DocProps":
        if not payload:
            return cls()
        filename = payload.get("filename")
        extra = {key: value for key, value in payload.items() if key != "filename"}
        return cls(filename=filename if isinstance(filename, str) else None, extra=MappingProxyType(extra))


@dataclass(frozen=True, slots=True)
class ComponentInstance:
    """A node of the plan tree.

    ``props`` never contains the reserved ``children`` key; nested instances
    are lifted into ``children`` so rendering can hand ``props`` straight to
    the template renderer.
    """

    component: str
    props: Mapping[str, Any] = field(default_factory=dict)
    children: Tuple["ComponentInstance", ...] = ()

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ComponentInstance":
        """Build the instance tree bottom-up with an explicit stack, so nesting depth is unbounded."""
        built: Dict[int, ComponentInstance] = {}
        pending: List[Tuple[Mapping[str, Any], bool]] = [(payload, False)]
        while pending:
            node, expanded = pending.pop()
            raw_props: Mapping[str, Any] = node.get("props") or {}
            raw_children = raw_props.get(CHILDREN_KEY) or ()
            if not expanded:
                pending.append((node, True))
                pending.extend((child, False) for child in raw_children)
                continue
            props: Dict[str, Any] = {key: value for key, value in raw_props.items() if key != CHILDREN_KEY}
            built[id(node)] = cls(
                component=node["component"],
                props=MappingProxyType(props),
                children=tuple(built[id(child)] for child in raw_children),
            )
        return built[id(payload)]

    def count_nodes(self) -> int:
        count = 0
        pending: List[ComponentInstance] = [self]
        while pending:
            count += 1
            pending.extend(pending.pop().children)
        return count


@dataclass(frozen=True, slots=True)
class DocumentPlan:
    """Root entity submitted by the caller; ``body`` order is document order."""

    body: Tuple[ComponentInstance, ...]
    doc_props: DocProps = field(default_factory=DocProps)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "DocumentPlan":
        """Build a plan from an already validated JSON-like payload."""
        body = tuple(ComponentInstance.from_dict(item) for item in payload.get("body") or ())
        return cls(body=body, doc_props=DocProps.from_dict(payload.get("doc_props")))

    def count_nodes(self) -> int:
        return sum(instance.count_nodes() for instance in self.body)


def resolve_output_filename(doc_props: Optional[DocProps]) -> str:
    """Return the attachment filename for a plan, enforcing a ``.docx`` suffix."""
    filename = (doc_props.filename if doc_props else None) or ""
    filename = filename.strip()
    if not filename:
        return DEFAULT_FILENAME
    if not filename.lower().endswith(".docx"):
        filename += ".docx"
    return filename
