"""Shared builders for in-memory shells, libraries and assembled output."""
from __future__ import annotations

import io
import zipfile
from pathlib import Path
from typing import Dict, List, Mapping, Optional
from xml.etree import ElementTree as ET

from docx_assembler.library.component_library import ComponentLibrary
from docx_assembler.package.shell_store import ShellStore
from docx_assembler.utils.xml_utils import W_NS, collect_text

ASSETS_DIR = Path(__file__).resolve().parent.parent / "assets"
BUNDLED_SHELL = ASSETS_DIR / "shell" / "template_shell.docx"
BUNDLED_COMPONENTS = ASSETS_DIR / "components"
BUNDLED_RULES = ASSETS_DIR / "schemas" / "rules.json"
BUNDLED_PLANS = ASSETS_DIR / "plans"

SECT_PR = '<w:sectPr><w:pgSz w:w="12240" w:h="15840"/></w:sectPr>'

CONTENT_TYPES = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
    '<Default Extension="xml" ContentType="application/xml"/>'
    '<Override PartName="/word/document.xml" '
    'ContentType="application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml"/>'
    "</Types>"
)

STYLES = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    f'<w:styles xmlns:w="{W_NS}"><w:docDefaults/></w:styles>'
)


def document_xml(body: str = SECT_PR) -> bytes:
    return (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        f'<w:document xmlns:w="{W_NS}" '
        'xmlns:mc="http://schemas.openxmlformats.org/markup-compatibility/2006" '
        'xmlns:w14="http://schemas.microsoft.com/office/word/2010/wordml" '
        'mc:Ignorable="w14">'
        f"<w:body>{body}</w:body></w:document>"
    ).encode("utf-8")


def shell_parts(body: str = SECT_PR, document: Optional[bytes] = None) -> Dict[str, bytes]:
    return {
        "[Content_Types].xml": CONTENT_TYPES.encode("utf-8"),
        "word/document.xml": document if document is not None else document_xml(body),
        "word/styles.xml": STYLES.encode("utf-8"),
    }


def make_shell(body: str = SECT_PR, document: Optional[bytes] = None) -> ShellStore:
    return ShellStore.from_parts(shell_parts(body, document))


def write_shell_docx(path: Path, parts: Mapping[str, bytes]) -> Path:
    with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as archive:
        for name, data in parts.items():
            archive.writestr(name, data)
    return path


def paragraph_template(label: str, placeholder: str = "value") -> str:
    return f'<w:p><w:r><w:t xml:space="preserve">{label}:{{{{ {placeholder} }}}}</w:t></w:r></w:p>'


def simple_library() -> ComponentLibrary:
    return ComponentLibrary(
        {
            "A": paragraph_template("A"),
            "B": paragraph_template("B"),
            "C": paragraph_template("C"),
            "Title": paragraph_template("Title", "document_title"),
            "Group": paragraph_template("Group", "label"),
            "Box": (
                '<w:tbl><w:tr><w:tc><w:p><w:r><w:t xml:space="preserve">Box:{{ label }}</w:t></w:r></w:p>'
                "<dgx:children/></w:tc></w:tr></w:tbl>"
            ),
            "Broken": "<w:p><w:r><w:t>{{ value }}</w:t></w:p>",
        }
    )


def read_part(docx_bytes: bytes, name: str = "word/document.xml") -> bytes:
    with zipfile.ZipFile(io.BytesIO(docx_bytes)) as archive:
        return archive.read(name)


def read_body(docx_bytes: bytes) -> ET.Element:
    root = ET.fromstring(read_part(docx_bytes))
    body = root.find(f"{{{W_NS}}}body")
    assert body is not None
    return body


def body_texts(docx_bytes: bytes) -> List[str]:
    """Text of every top-level body element except the section properties."""
    return [collect_text(child) for child in read_body(docx_bytes) if child.tag != f"{{{W_NS}}}sectPr"]
