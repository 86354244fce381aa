"""Shell package store: loads the base DOCX once and hands out request-local copies."""
from __future__ import annotations

import io
import zipfile
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple, Union

from docx_assembler.errors import SerializeError, ShellLoadError
from docx_assembler.utils.logger import get_logger

LOGGER = get_logger(__name__)

DOCUMENT_XML_PATH = "word/document.xml"

# Fixed timestamp for entries that did not come from an archive.
_DEFAULT_DATE_TIME = (1980, 1, 1, 0, 0, 0)


@dataclass(frozen=True, slots=True)
class EntryInfo:
    """Zip metadata preserved so re-serialization is deterministic."""

    date_time: Tuple[int, int, int, int, int, int] = _DEFAULT_DATE_TIME
    compress_type: int = zipfile.ZIP_DEFLATED


@dataclass(slots=True)
class ShellPackage:
    """Mutable, request-local copy of the shell's parts (path -> bytes)."""

    parts: Dict[str, bytes]
    entry_info: Dict[str, EntryInfo] = field(default_factory=dict)

    def part_names(self) -> List[str]:
        return list(self.parts)

    def read_part(self, name: str) -> Optional[bytes]:
        return self.parts.get(name)

    def write_part(self, name: str, data: bytes) -> None:
        """Replace (or add) a part; existing entries keep their zip position and metadata."""
        self.parts[name] = bytes(data)

    def to_bytes(self) -> bytes:
        """Re-zip the parts in their original order."""
        buffer = io.BytesIO()
        try:
            with zipfile.ZipFile(buffer, "w") as archive:
                for name, data in self.parts.items():
                    info = self.entry_info.get(name, EntryInfo())
                    zip_info = zipfile.ZipInfo(filename=name, date_time=info.date_time)
                    zip_info.compress_type = info.compress_type
                    archive.writestr(zip_info, data)
        except (OSError, ValueError, zipfile.BadZipFile) as exc:
            raise SerializeError(f"failed to write package: {exc}") from exc
        return buffer.getvalue()


class ShellStore:
    """Holds the canonical shell package; the only way to reach its parts is :meth:`clone`."""

    def __init__(self, parts: Mapping[str, bytes], entry_info: Optional[Mapping[str, EntryInfo]] = None,
                 source: Union[str, Path, None] = None) -> None:
        self._parts = MappingProxyType(dict(parts))
        self._entry_info = MappingProxyType(dict(entry_info or {}))
        self.source = source
        if DOCUMENT_XML_PATH not in self._parts:
            raise ShellLoadError(source or "<memory>", f"required part missing: {DOCUMENT_XML_PATH}")

    @classmethod
    def load(cls, shell_path: Union[str, Path]) -> "ShellStore":
        """Open a DOCX archive and read every entry fully into memory."""
        path = Path(shell_path)
        parts: Dict[str, bytes] = {}
        entry_info: Dict[str, EntryInfo] = {}
        try:
            with zipfile.ZipFile(path) as docx_zip:
                for item in docx_zip.infolist():
                    if item.is_dir():
                        continue
                    parts[item.filename] = docx_zip.read(item)
                    entry_info[item.filename] = EntryInfo(date_time=item.date_time, compress_type=item.compress_type)
        except FileNotFoundError as exc:
            raise ShellLoadError(path, "file not found") from exc
        except zipfile.BadZipFile as exc:
            raise ShellLoadError(path, f"not a zip archive: {exc}") from exc
        except (OSError, EOFError, RuntimeError, NotImplementedError, zipfile.LargeZipFile, zlib.error) as exc:
            raise ShellLoadError(path, f"failed to read entry: {exc}") from exc

        LOGGER.debug("Loaded %d parts from %s", len(parts), path.name)
        return cls(parts, entry_info, source=path)

    @classmethod
    def from_parts(cls, parts: Mapping[str, bytes]) -> "ShellStore":
        """Build a store from in-memory parts, e.g. a shell generated by tooling."""
        return cls(parts)

    def clone(self) -> ShellPackage:
        """Return an independent copy; mutating it never affects the store or other clones."""
        return ShellPackage(
            parts={name: bytes(data) for name, data in self._parts.items()},
            entry_info=dict(self._entry_info),
        )

    def __len__(self) -> int:
        return len(self._parts)
