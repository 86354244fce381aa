"""Tests for loading component templates from disk."""
import tempfile
import unittest
from pathlib import Path

from docx_assembler.errors import ComponentLoadError, ComponentNotFoundError, DuplicateComponentError
from docx_assembler.library.component_library import ComponentLibrary
from docx_assembler.tests.fixtures import BUNDLED_COMPONENTS


class ComponentLibraryTest(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _write(self, relative: str, content: str) -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def test_loads_components_recursively(self) -> None:
        self._write("Title.component.xml", "<w:p>{{ title }}</w:p>")
        self._write("nested/deeper/Note.component.xml", "<w:p>{{ note }}</w:p>")

        library = ComponentLibrary.load(self.root)

        self.assertEqual(library.names(), ["Note", "Title"])
        self.assertEqual(library.get("Note"), "<w:p>{{ note }}</w:p>")
        self.assertEqual(len(library), 2)

    def test_ignores_files_without_component_suffix(self) -> None:
        self._write("Title.component.xml", "<w:p/>")
        self._write("README.md", "docs")
        self._write("Other.xml", "<w:p/>")

        library = ComponentLibrary.load(self.root)

        self.assertEqual(library.names(), ["Title"])

    def test_lookup_is_exact_and_case_sensitive(self) -> None:
        self._write("Title.component.xml", "<w:p/>")
        library = ComponentLibrary.load(self.root)

        self.assertIn("Title", library)
        self.assertNotIn("title", library)
        with self.assertRaises(ComponentNotFoundError) as ctx:
            library.get("title")
        self.assertEqual(ctx.exception.component_name, "title")

    def test_duplicate_names_across_directories_fail(self) -> None:
        self._write("a/Title.component.xml", "<w:p>a</w:p>")
        self._write("b/Title.component.xml", "<w:p>b</w:p>")

        with self.assertRaises(DuplicateComponentError) as ctx:
            ComponentLibrary.load(self.root)
        self.assertEqual(ctx.exception.component_name, "Title")

    def test_empty_directory_is_a_valid_library(self) -> None:
        library = ComponentLibrary.load(self.root)
        self.assertEqual(len(library), 0)

    def test_missing_directory_fails(self) -> None:
        with self.assertRaises(ComponentLoadError):
            ComponentLibrary.load(self.root / "does-not-exist")

    def test_undecodable_file_fails(self) -> None:
        (self.root / "Bad.component.xml").write_bytes(b"\xff\xfe\xfa")
        with self.assertRaises(ComponentLoadError):
            ComponentLibrary.load(self.root)

    def test_bundled_library_loads(self) -> None:
        library = ComponentLibrary.load(BUNDLED_COMPONENTS)
        for name in ("DocumentTitle", "DocumentSubject", "TestBlock", "Section", "Panel"):
            self.assertIn(name, library)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
