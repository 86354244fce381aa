"""Entry-point for rendering a plan file into a DOCX document."""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional, Sequence

from docx_assembler.config import EngineSettings
from docx_assembler.engine import DocumentEngine
from docx_assembler.errors import DocGenError
from docx_assembler.utils.logger import get_logger

LOGGER = get_logger(__name__)

EXIT_OK = 0
EXIT_INVALID_PLAN = 1
EXIT_INTERNAL_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Assemble a DOCX document from a JSON document plan")
    parser.add_argument("--plan", required=True, help="Path to the JSON plan file")
    parser.add_argument("--output", help="Where to write the generated .docx (defaults to doc_props.filename)")
    parser.add_argument("--shell", help="Path to the shell DOCX file")
    parser.add_argument("--components", help="Directory containing *.component.xml files")
    parser.add_argument("--rules", help="Path to the JSON validation rule file")
    parser.add_argument("--validate-only", action="store_true", help="Validate the plan without assembling")
    return parser


def run(plan_path: Path, settings: EngineSettings, output: Optional[Path] = None, *, validate_only: bool = False) -> int:
    """Validate and render one plan file; returns a process exit code."""
    engine = DocumentEngine.from_settings(settings)
    LOGGER.info("Loaded components: %s", ", ".join(engine.loaded_components()))

    payload = json.loads(plan_path.read_text(encoding="utf-8"))
    if validate_only:
        validation = engine.validate(payload)
        print(json.dumps(validation.to_dict(), indent=2))
        return EXIT_OK if validation.valid else EXIT_INVALID_PLAN

    outcome = engine.generate(payload)
    if not outcome.ok:
        print(json.dumps(outcome.validation.to_dict(), indent=2), file=sys.stderr)
        return EXIT_INVALID_PLAN

    output_path = output or Path(outcome.filename or "generated_document.docx")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(outcome.document or b"")
    LOGGER.info("Document generated successfully: %s", output_path)
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    plan_path = Path(args.plan).resolve()
    if not plan_path.exists():
        LOGGER.error("Plan file not found: %s", plan_path)
        return EXIT_INTERNAL_ERROR

    try:
        settings = EngineSettings.from_env().with_overrides(
            shell_path=args.shell, components_dir=args.components, rules_path=args.rules
        )
        return run(plan_path, settings, Path(args.output) if args.output else None, validate_only=args.validate_only)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        LOGGER.error("Plan file is not valid UTF-8 JSON: %s", exc)
        return EXIT_INVALID_PLAN
    except OSError as exc:
        LOGGER.error("Failed to read or write a file: %s", exc)
        return EXIT_INTERNAL_ERROR
    except DocGenError as exc:
        LOGGER.error("%s", exc)
        return EXIT_INTERNAL_ERROR


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
