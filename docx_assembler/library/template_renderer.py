"""Placeholder substitution for component templates."""
from __future__ import annotations

import json
import re
from typing import Any, Mapping
from xml.sax.saxutils import escape

from docx_assembler.model.plan_model import CHILDREN_KEY

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([^{}\s]+)\s*\}\}")
_XML_ENTITIES = {'"': "&quot;", "'": "&apos;"}


def stringify(value: Any) -> str:
    """Convert a JSON-like prop value into the text inserted into a template."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), sort_keys=True)
    return str(value)


def escape_xml(text: str) -> str:
    """Escape XML reserved characters, quotes included."""
    return escape(text, _XML_ENTITIES)


def render_template(template: str, props: Mapping[str, Any]) -> str:
    """Substitute every ``{{ key }}`` found in ``props`` in a single pass.

    Replacement text is escaped and never rescanned, so a value that itself
    looks like a placeholder is inserted literally. Placeholders without a
    matching prop are left untouched.
    """
    snapshot = {key: escape_xml(stringify(value)) for key, value in props.items() if key != CHILDREN_KEY}
    if not snapshot:
        return template

    def _substitute(match: "re.Match[str]") -> str:
        return snapshot.get(match.group(1), match.group(0))

    return PLACEHOLDER_PATTERN.sub(_substitute, template)
