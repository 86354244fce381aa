"""Engine facade wiring the shell store, component library, validator and assembler."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Union

from docx_assembler.assembly.assembler import DEFAULT_MAX_DEPTH, DEFAULT_MAX_NODES, Assembler
from docx_assembler.config import EngineSettings
from docx_assembler.library.component_library import ComponentLibrary
from docx_assembler.model.plan_model import DocumentPlan, resolve_output_filename
from docx_assembler.model.validation_model import ValidationResult
from docx_assembler.package.shell_store import ShellStore
from docx_assembler.utils.logger import get_logger
from docx_assembler.validation.plan_validator import PlanValidator

LOGGER = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class GenerationOutcome:
    """Either a finished document or a structured rejection, never both."""

    validation: ValidationResult
    document: Optional[bytes] = None
    filename: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.document is not None


class DocumentEngine:
    """Process-wide engine; every dependency is injected and read-only after startup."""

    def __init__(
        self,
        shell: ShellStore,
        library: ComponentLibrary,
        validator: PlanValidator,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
        max_nodes: int = DEFAULT_MAX_NODES,
    ) -> None:
        self._library = library
        self._validator = validator
        self._assembler = Assembler(shell, library, max_depth=max_depth, max_nodes=max_nodes)

        unknown = sorted(set(validator.component_names()) - set(library.names()))
        if unknown:
            LOGGER.warning("Rule set names components missing from the library: %s", ", ".join(unknown))

    @classmethod
    def from_paths(
        cls,
        shell_path: Union[str, Path],
        components_dir: Union[str, Path],
        rules_path: Union[str, Path],
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
        max_nodes: int = DEFAULT_MAX_NODES,
    ) -> "DocumentEngine":
        """Load every startup asset; any failure here must stop the process."""
        shell = ShellStore.load(shell_path)
        library = ComponentLibrary.load(components_dir)
        validator = PlanValidator.from_file(rules_path)
        return cls(shell, library, validator, max_depth=max_depth, max_nodes=max_nodes)

    @classmethod
    def from_settings(cls, settings: EngineSettings) -> "DocumentEngine":
        return cls.from_paths(
            settings.shell_path,
            settings.components_dir,
            settings.rules_path,
            max_depth=settings.max_depth,
            max_nodes=settings.max_nodes,
        )

    def loaded_components(self) -> List[str]:
        return self._library.names()

    def validate(self, payload: Any) -> ValidationResult:
        return self._validator.validate(payload)

    def assemble(self, plan: DocumentPlan) -> bytes:
        return self._assembler.assemble(plan)

    def generate(self, payload: Any) -> GenerationOutcome:
        """Validate ``payload`` and, only if it passes, assemble the document.

        Faults other than validation failures propagate as ``DocGenError``.
        """
        validation = self.validate(payload)
        if not validation.valid:
            LOGGER.info("Plan rejected: %d validation error(s)", len(validation.errors))
            return GenerationOutcome(validation=validation)

        plan = DocumentPlan.from_dict(payload)
        document = self.assemble(plan)
        filename = resolve_output_filename(plan.doc_props)
        LOGGER.info("Generated %s (%d bytes, %d components)", filename, len(document), plan.count_nodes())
        return GenerationOutcome(validation=validation, document=document, filename=filename)
