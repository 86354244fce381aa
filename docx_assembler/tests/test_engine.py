"""Tests for the validate-then-assemble engine facade."""
import json
import unittest
from unittest import mock

from docx_assembler.config import EngineSettings
from docx_assembler.engine import DocumentEngine
from docx_assembler.library.component_library import ComponentLibrary
from docx_assembler.tests.fixtures import (
    BUNDLED_COMPONENTS,
    BUNDLED_PLANS,
    BUNDLED_RULES,
    BUNDLED_SHELL,
    body_texts,
    make_shell,
    read_part,
)
from docx_assembler.validation.plan_validator import PlanValidator
from docx_assembler.validation.rules_loader import RuleSet


def load_plan(name: str) -> dict:
    return json.loads((BUNDLED_PLANS / name).read_text(encoding="utf-8"))


class BundledEngineTest(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.engine = DocumentEngine.from_settings(EngineSettings())

    def test_loaded_components(self) -> None:
        names = self.engine.loaded_components()
        self.assertIn("DocumentTitle", names)
        self.assertEqual(names, sorted(names))

    def test_smoke_plan(self) -> None:
        outcome = self.engine.generate(load_plan("smoke_test_DocumentTitle.json"))

        self.assertTrue(outcome.ok)
        self.assertTrue(outcome.validation.valid)
        self.assertEqual(outcome.filename, "generated_document.docx")
        document = read_part(outcome.document).decode("utf-8")
        self.assertIn("Spec Test", document)
        self.assertNotIn("{{", document)

    def test_full_integration_plan(self) -> None:
        outcome = self.engine.generate(load_plan("full_integration_test.json"))

        self.assertTrue(outcome.ok, outcome.validation.errors)
        self.assertEqual(outcome.filename, "integration_report.docx")
        document = read_part(outcome.document).decode("utf-8")
        self.assertIn("Acceptance Test Report", document)
        self.assertIn("DOC-1234, Rev A", document)
        self.assertIn("12 V &amp; 2 A.", document)
        self.assertNotIn("{{", document)
        self.assertNotIn("dgx:", document)
        texts = body_texts(outcome.document)
        self.assertEqual(texts[0], "Acceptance Test Report")

    def test_invalid_plan_is_not_assembled(self) -> None:
        plan = load_plan("invalid/bad_test_result_enum.json")
        with mock.patch.object(self.engine, "assemble") as assemble:
            outcome = self.engine.generate(plan)

        assemble.assert_not_called()
        self.assertFalse(outcome.ok)
        self.assertIsNone(outcome.document)
        self.assertIsNone(outcome.filename)
        self.assertIn("body[1].props.test_result", outcome.validation.paths())

    def test_from_paths_matches_settings(self) -> None:
        engine = DocumentEngine.from_paths(BUNDLED_SHELL, BUNDLED_COMPONENTS, BUNDLED_RULES)
        plan = load_plan("smoke_test_DocumentTitle.json")
        self.assertEqual(engine.generate(plan).document, self.engine.generate(plan).document)


class InjectedEngineTest(unittest.TestCase):
    def setUp(self) -> None:
        rules = RuleSet.from_dict(
            {
                "document": {"require_non_empty_body": True},
                "components": {"Note": {"props": {"text": {"type": "string"}}}},
            }
        )
        library = ComponentLibrary({"Note": '<w:p><w:r><w:t xml:space="preserve">{{ text }}</w:t></w:r></w:p>'})
        self.engine = DocumentEngine(make_shell(), library, PlanValidator(rules))

    def test_filename_suffix_is_enforced(self) -> None:
        body = [{"component": "Note", "props": {"text": "hello"}}]
        cases = {
            "report": "report.docx",
            "report.docx": "report.docx",
            "Report.DOCX": "Report.DOCX",
            "  ": "generated_document.docx",
        }
        for given, expected in cases.items():
            with self.subTest(filename=given):
                outcome = self.engine.generate({"doc_props": {"filename": given}, "body": body})
                self.assertEqual(outcome.filename, expected)

    def test_generated_document_contains_props(self) -> None:
        outcome = self.engine.generate({"body": [{"component": "Note", "props": {"text": "a < b"}}]})
        self.assertEqual(body_texts(outcome.document), ["a < b"])

    def test_missing_library_component_is_logged(self) -> None:
        rules = RuleSet.from_dict({"components": {"Note": {}, "Other": {}}})
        with self.assertLogs("docx_assembler.engine", level="WARNING") as logs:
            DocumentEngine(make_shell(), ComponentLibrary({"Note": "<w:p/>"}), PlanValidator(rules))
        self.assertIn("Other", "\n".join(logs.output))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
