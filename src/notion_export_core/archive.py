"""In-memory view of a downloaded export archive."""

from __future__ import annotations

import io
import posixpath
import zipfile
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from .exceptions import FileNotFoundInArchiveError, FilesystemError, TransportError
from .logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ArchiveEntry:
    """One file inside the export archive."""

    path: str
    data: bytes

    @property
    def name(self) -> str:
        """Base file name, e.g. `Tasks_all.csv`."""
        return posixpath.basename(self.path)

    def text(self, encoding: str = "utf-8-sig") -> str:
        """Decode the entry content, dropping a leading byte-order mark."""
        return self.data.decode(encoding)


EntryPredicate = Callable[[ArchiveEntry], bool]


def markdown_predicate(entry: ArchiveEntry) -> bool:
    """Match Markdown pages."""
    return entry.name.endswith(".md")


def csv_predicate(only_current_view: bool = False) -> EntryPredicate:
    """Match a database CSV.

    Notion exports each database twice: `<name>_all.csv` with every row and
    `<name>.csv` with the rows of the current view.
    """
    if only_current_view:
        return lambda entry: entry.name.endswith(".csv") and not entry.name.endswith("_all.csv")
    return lambda entry: entry.name.endswith("_all.csv")


class ExportArchive:
    """A ZIP archive held in memory, with entries in archive order."""

    def __init__(self, raw: bytes):
        """Parse `raw` as a ZIP; raises TransportError when it is not one."""
        self.raw = raw
        try:
            with zipfile.ZipFile(io.BytesIO(raw)) as zf:
                self.entries = [
                    ArchiveEntry(info.filename, zf.read(info)) for info in zf.infolist() if not info.is_dir()
                ]
        # RuntimeError: encrypted entry, NotImplementedError: unsupported compression
        except (zipfile.BadZipFile, zipfile.LargeZipFile, EOFError, RuntimeError, NotImplementedError) as exc:
            logger.error("Downloaded export is not a valid ZIP (%s bytes): %s", len(raw), exc)
            raise TransportError(f"Downloaded export is not a valid ZIP archive: {exc}") from exc
        logger.debug("Archive holds %s entries", len(self.entries))

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    @property
    def names(self) -> list[str]:
        """In-archive paths of all file entries."""
        return [entry.path for entry in self.entries]

    def find(self, predicate: EntryPredicate) -> ArchiveEntry | None:
        """Return the first entry satisfying `predicate`, or None."""
        return next((entry for entry in self.entries if predicate(entry)), None)

    def get_file_string(self, predicate: EntryPredicate) -> str:
        """Return the stripped UTF-8 text of the first matching entry."""
        entry = self.find(predicate)
        if entry is None:
            raise FileNotFoundInArchiveError()
        return entry.text().strip()

    def extract_all_to(self, path: str | Path) -> list[Path]:
        """Write every entry below `path`, keeping archive-relative paths.

        Returns the written file paths. Entries pointing outside `path`
        (absolute names, `..` components) are refused.
        """
        root = Path(path).expanduser().resolve()
        written: list[Path] = []
        try:
            root.mkdir(parents=True, exist_ok=True)
            for entry in self.entries:
                target = (root / entry.path).resolve()
                if target != root and root not in target.parents:
                    raise FilesystemError(f"Refusing to extract {entry.path!r} outside {root}", target)
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(entry.data)
                written.append(target)
        except FilesystemError:
            raise
        except OSError as exc:
            logger.error("Extraction to %s failed: %s", root, exc)
            raise FilesystemError(f"Cannot extract export to {root}: {exc}", exc.filename or root) from exc

        logger.info("Extracted %s files to %s", len(written), root)
        return written
