"""Helper functions to work with OpenXML namespaces, parsing and serialization."""
from __future__ import annotations

import io
import re
from dataclasses import dataclass
from typing import Dict, List, Tuple
from xml.etree import ElementTree as ET


@dataclass(frozen=True)
class Namespaces:
    """Common OpenXML namespace prefixes used across the engine."""

    WORD: Dict[str, str] = None  # type: ignore[assignment]
    FRAGMENT: Dict[str, str] = None  # type: ignore[assignment]

    def __post_init__(self) -> None:  # pragma: no cover
        raise RuntimeError("Namespaces should not be instantiated")


W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
ANCHOR_NS = "urn:docx-assembler:anchor"
CHILDREN_ANCHOR_TAG = f"{{{ANCHOR_NS}}}children"

Namespaces.WORD = {  # type: ignore[attr-defined]
    "w": W_NS,
}
# Prefixes component fragments may use without declaring them.
Namespaces.FRAGMENT = {  # type: ignore[attr-defined]
    "w": W_NS,
    "r": "http://schemas.openxmlformats.org/officeDocument/2006/relationships",
    "mc": "http://schemas.openxmlformats.org/markup-compatibility/2006",
    "wp": "http://schemas.openxmlformats.org/drawingml/2006/wordprocessingDrawing",
    "wp14": "http://schemas.microsoft.com/office/word/2010/wordprocessingDrawing",
    "a": "http://schemas.openxmlformats.org/drawingml/2006/main",
    "a14": "http://schemas.microsoft.com/office/drawing/2010/main",
    "pic": "http://schemas.openxmlformats.org/drawingml/2006/picture",
    "wps": "http://schemas.microsoft.com/office/word/2010/wordprocessingShape",
    "w14": "http://schemas.microsoft.com/office/word/2010/wordml",
    "v": "urn:schemas-microsoft-com:vml",
    "o": "urn:schemas-microsoft-com:office:office",
    "w10": "urn:schemas-microsoft-com:office:word",
    "dgx": ANCHOR_NS,
}

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\r\n'
_FRAGMENT_ROOT = "docx-assembler-fragment"
_ROOT_START = re.compile(r"<([^\s/>?!]+)")
_DECLARED_PREFIX = re.compile(r"\sxmlns:([\w.-]+)=")


def register_namespaces(namespaces: Dict[str, str]) -> None:
    """Register stable prefixes so serialization keeps ``w:`` instead of ``ns0:``."""
    for prefix, uri in namespaces.items():
        if prefix and not re.match(r"ns\d+$", prefix):
            ET.register_namespace(prefix, uri)


register_namespaces(Namespaces.FRAGMENT)


def declared_namespaces(data: bytes) -> List[Tuple[str, str]]:
    """Return the ``(prefix, uri)`` pairs declared anywhere in ``data``, in document order."""
    declared: List[Tuple[str, str]] = []
    for _, (prefix, uri) in ET.iterparse(io.BytesIO(data), events=("start-ns",)):
        if (prefix, uri) not in declared:
            declared.append((prefix, uri))
    return declared


def wrap_fragment(fragment: str) -> str:
    """Embed a namespace-less fragment in a root that declares the OpenXML prefixes."""
    declarations = " ".join(f'xmlns:{prefix}="{uri}"' for prefix, uri in Namespaces.FRAGMENT.items())
    return f"<{_FRAGMENT_ROOT} {declarations}>{fragment}</{_FRAGMENT_ROOT}>"


def parse_fragment(fragment: str) -> ET.Element:
    """Parse a fragment forest; the returned wrapper element holds its top-level nodes."""
    return ET.fromstring(wrap_fragment(fragment))


def serialize_document(root: ET.Element, namespaces: List[Tuple[str, str]]) -> bytes:
    """Serialize a part root, re-declaring any original root namespaces ElementTree dropped.

    ElementTree only emits declarations for namespaces actually used by an
    element or attribute; prefixes referenced from attribute values
    (``mc:Ignorable="w14 wp14"``) would otherwise end up undeclared.
    """
    text = ET.tostring(root, encoding="unicode")
    match = _ROOT_START.match(text)
    if match is None:
        return (XML_DECLARATION + text).encode("utf-8")

    start_tag = text[: text.index(">") + 1]
    present = set(_DECLARED_PREFIX.findall(start_tag))
    missing = "".join(
        f' xmlns:{prefix}="{uri}"' for prefix, uri in namespaces if prefix and prefix not in present
    )
    text = text[: match.end()] + missing + text[match.end() :]
    return (XML_DECLARATION + text).encode("utf-8")


def collect_text(element: ET.Element) -> str:
    """Concatenate every ``w:t`` text node beneath ``element`` in document order."""
    return "".join(node.text or "" for node in element.iter(f"{{{W_NS}}}t"))
