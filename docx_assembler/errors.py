"""Exception hierarchy raised by the document assembly engine.

Validation failures are never raised; they are returned as
:class:`~docx_assembler.model.validation_model.ValidationResult` data. Every
exception defined here signals a fault the caller cannot fix by changing the
plan (broken assets, misconfiguration, template bugs).
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class DocGenError(Exception):
    """Base error carrying the engine operation that failed."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"docgen {operation}: {message}")
        self.operation = operation
        self.message = message


class ConfigurationError(DocGenError):
    def __init__(self, message: str) -> None:
        super().__init__("configuration", message)


class ComponentLoadError(DocGenError):
    """Component library directory or file could not be read."""

    def __init__(self, message: str) -> None:
        super().__init__("component-load", message)


class DuplicateComponentError(ComponentLoadError):
    """Two component files resolve to the same component name."""

    def __init__(self, component_name: str, first: Path, second: Path) -> None:
        super().__init__(f"duplicate component {component_name!r}: {first} and {second}")
        self.component_name = component_name
        self.paths = (first, second)


class ComponentNotFoundError(DocGenError):
    def __init__(self, component_name: str) -> None:
        super().__init__("component-lookup", f"component not found: {component_name}")
        self.component_name = component_name


class ShellLoadError(DocGenError):
    """Shell package could not be opened or is structurally unusable."""

    def __init__(self, path: Union[str, Path], reason: str) -> None:
        super().__init__("shell-load", f"failed to load shell document from {path}: {reason}")
        self.path = path
        self.reason = reason


class RuleSetError(DocGenError):
    """Validation rule file is unreadable or malformed."""

    def __init__(self, message: str) -> None:
        super().__init__("rules", message)


class AssemblyError(DocGenError):
    def __init__(self, message: str) -> None:
        super().__init__("assembly", message)


class ShellStructureError(AssemblyError):
    """The cloned shell lacks the parts or elements assembly depends on."""


class XmlParseError(AssemblyError):
    """A shell XML part could not be parsed."""


class FragmentParseError(AssemblyError):
    """A rendered component fragment is not well-formed XML."""

    def __init__(self, component: str, plan_path: Optional[str], reason: str) -> None:
        location = f" at {plan_path}" if plan_path else ""
        super().__init__(f"component {component!r}{location} rendered malformed XML: {reason}")
        self.component = component
        self.plan_path = plan_path
        self.reason = reason


class PlanLimitError(AssemblyError):
    """Plan exceeds the configured nesting depth or node count."""


class SerializeError(DocGenError):
    def __init__(self, message: str) -> None:
        super().__init__("serialize", message)
