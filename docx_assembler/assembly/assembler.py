"""Splice rendered component fragments into a clone of the shell document."""
from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union
from xml.etree import ElementTree as ET

from docx_assembler.errors import FragmentParseError, PlanLimitError, ShellStructureError, XmlParseError
from docx_assembler.library.component_library import ComponentLibrary
from docx_assembler.library.template_renderer import render_template
from docx_assembler.model.plan_model import ComponentInstance, DocumentPlan
from docx_assembler.package.shell_store import DOCUMENT_XML_PATH, ShellStore
from docx_assembler.utils.logger import get_logger
from docx_assembler.utils.xml_utils import (
    CHILDREN_ANCHOR_TAG,
    Namespaces,
    declared_namespaces,
    parse_fragment,
    register_namespaces,
    serialize_document,
)

LOGGER = get_logger(__name__)

DEFAULT_MAX_DEPTH = 16
DEFAULT_MAX_NODES = 5000

_BODY_TAG = f"{{{Namespaces.WORD['w']}}}body"
_SECT_PR_TAG = f"{{{Namespaces.WORD['w']}}}sectPr"


@dataclass(frozen=True, slots=True)
class AppendAfterParent:
    """Children follow the parent's elements at body level, in plan order."""


@dataclass(frozen=True, slots=True)
class AnchorPoint:
    """Children replace an anchor element inside the parent's fragment."""

    container: ET.Element
    anchor: ET.Element


ChildPlacement = Union[AppendAfterParent, AnchorPoint]


def find_children_anchor(wrapper: ET.Element) -> ChildPlacement:
    """Pick the placement strategy declared by a rendered fragment.

    A fragment opts into nesting with a ``<dgx:children/>`` element; the first
    one found wins.
    """
    for container in wrapper.iter():
        for child in container:
            if child.tag == CHILDREN_ANCHOR_TAG:
                return AnchorPoint(container=container, anchor=child)
    return AppendAfterParent()


def _strip_anchors(wrapper: ET.Element) -> None:
    for container in list(wrapper.iter()):
        for child in [node for node in container if node.tag == CHILDREN_ANCHOR_TAG]:
            container.remove(child)


@dataclass
class _Budget:
    max_depth: int
    max_nodes: int
    nodes: int = 0


class Assembler:
    """Turns a validated plan into a complete DOCX byte stream.

    The shell store and component library are shared read-only; every call to
    :meth:`assemble` works on its own clone and XML tree, so concurrent calls
    never interfere.
    """

    def __init__(
        self,
        shell: ShellStore,
        library: ComponentLibrary,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
        max_nodes: int = DEFAULT_MAX_NODES,
    ) -> None:
        self._shell = shell
        self._library = library
        self._max_depth = max_depth
        self._max_nodes = max_nodes
        self._namespaces = self._shell_namespaces()
        register_namespaces({prefix: uri for prefix, uri in self._namespaces if prefix})

    def assemble(self, plan: DocumentPlan) -> bytes:
        package = self._shell.clone()
        document_xml = package.read_part(DOCUMENT_XML_PATH)
        if document_xml is None:
            raise ShellStructureError(f"{DOCUMENT_XML_PATH} not found in shell document")

        try:
            root = ET.fromstring(document_xml)
        except ET.ParseError as exc:
            raise XmlParseError(f"failed to parse {DOCUMENT_XML_PATH}: {exc}") from exc

        body = root.find(f".//{_BODY_TAG}")
        if body is None:
            raise ShellStructureError(f"w:body element not found in {DOCUMENT_XML_PATH}")

        budget = _Budget(max_depth=self._max_depth, max_nodes=self._max_nodes)
        position = self._insertion_index(body)
        for index, instance in enumerate(plan.body):
            for element in self._render_instance(instance, f"body[{index}]", 1, budget):
                body.insert(position, deepcopy(element))
                position += 1

        package.write_part(DOCUMENT_XML_PATH, serialize_document(root, self._namespaces))
        result = package.to_bytes()
        LOGGER.debug("Assembled %d component(s) into %d bytes", budget.nodes, len(result))
        return result

    # ------------------------------------------------------------------
    # Internal helpers
    def _render_instance(
        self, instance: ComponentInstance, path: str, depth: int, budget: _Budget
    ) -> List[ET.Element]:
        budget.nodes += 1
        if budget.nodes > budget.max_nodes:
            raise PlanLimitError(f"plan exceeds {budget.max_nodes} components at {path}")
        if depth > budget.max_depth:
            raise PlanLimitError(f"plan nesting exceeds depth {budget.max_depth} at {path}")

        template = self._library.get(instance.component)
        rendered = render_template(template, instance.props)
        try:
            wrapper = parse_fragment(rendered)
        except ET.ParseError as exc:
            raise FragmentParseError(instance.component, path, str(exc)) from exc

        children: List[ET.Element] = []
        for index, child in enumerate(instance.children):
            children.extend(self._render_instance(child, f"{path}.props.children[{index}]", depth + 1, budget))

        placement = find_children_anchor(wrapper)
        if isinstance(placement, AnchorPoint):
            self._splice_at_anchor(placement, children)
            _strip_anchors(wrapper)
            return list(wrapper)
        _strip_anchors(wrapper)
        return list(wrapper) + children

    @staticmethod
    def _splice_at_anchor(placement: AnchorPoint, children: Sequence[ET.Element]) -> None:
        container, anchor = placement.container, placement.anchor
        position = list(container).index(anchor)
        container.remove(anchor)
        for offset, element in enumerate(children):
            container.insert(position + offset, element)

    @staticmethod
    def _insertion_index(body: ET.Element) -> int:
        """Index in ``body`` before which content goes; a trailing ``w:sectPr`` must stay last."""
        children = list(body)
        if children and children[-1].tag == _SECT_PR_TAG:
            return len(children) - 1
        return len(children)

    def _shell_namespaces(self) -> List[Tuple[str, str]]:
        document_xml: Optional[bytes] = self._shell.clone().read_part(DOCUMENT_XML_PATH)
        if document_xml is None:
            return []
        try:
            return declared_namespaces(document_xml)
        except ET.ParseError as exc:
            LOGGER.warning("Shell %s is not well-formed: %s", DOCUMENT_XML_PATH, exc)
            return []
