"""Component library: named OpenXML fragment templates loaded from disk."""
from __future__ import annotations

from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Union

from docx_assembler.errors import ComponentLoadError, ComponentNotFoundError, DuplicateComponentError
from docx_assembler.utils.logger import get_logger

LOGGER = get_logger(__name__)

COMPONENT_SUFFIX = ".component.xml"


def component_name_for(path: Path) -> str:
    """Return the component identity for ``<Name>.component.xml``."""
    return path.name[: -len(COMPONENT_SUFFIX)]


class ComponentLibrary:
    """Read-only mapping of component name to template text."""

    def __init__(self, templates: Mapping[str, str]) -> None:
        self._templates = MappingProxyType(dict(templates))

    @classmethod
    def load(cls, directory: Union[str, Path]) -> "ComponentLibrary":
        """Recursively load every ``*.component.xml`` below ``directory``.

        Files are visited in sorted path order. A name defined by two files is
        rejected instead of letting one silently shadow the other.
        """
        root = Path(directory)
        if not root.is_dir():
            raise ComponentLoadError(f"component directory not found: {root}")

        templates: Dict[str, str] = {}
        origins: Dict[str, Path] = {}
        try:
            candidates = sorted(path for path in root.rglob(f"*{COMPONENT_SUFFIX}") if path.is_file())
        except OSError as exc:
            raise ComponentLoadError(f"failed to scan {root}: {exc}") from exc

        for path in candidates:
            name = component_name_for(path)
            if not name:
                LOGGER.warning("Ignoring component file without a name: %s", path)
                continue
            if name in origins:
                raise DuplicateComponentError(name, origins[name], path)
            try:
                templates[name] = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                raise ComponentLoadError(f"failed to read component {name}: {exc}") from exc
            origins[name] = path

        if not templates:
            LOGGER.warning("No components found in %s; every generation will fail", root)
        LOGGER.info("Loaded %d components from %s", len(templates), root)
        return cls(templates)

    def get(self, name: str) -> str:
        """Exact, case-sensitive lookup."""
        try:
            return self._templates[name]
        except KeyError:
            raise ComponentNotFoundError(name) from None

    def names(self) -> List[str]:
        return sorted(self._templates)

    def __contains__(self, name: object) -> bool:
        return name in self._templates

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __len__(self) -> int:
        return len(self._templates)
