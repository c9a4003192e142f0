"""Load repository files from disk and run sentence extraction over them."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Collection, Iterator, List, Literal

from codeprose.errors import CodeproseError, LoadError, PathNotRepresentableError
from codeprose.models import SourceFile
from codeprose.utils.files import iter_source_paths

LOGGER = logging.getLogger(__name__)

OnError = Literal["raise", "skip"]


def relative_key(path: Path, prefix: Path) -> str:
    """Return ``path`` relative to ``prefix`` as a ``/``-separated UTF-8 safe string."""
    try:
        relative = path.relative_to(prefix)
    except ValueError as exc:
        raise PathNotRepresentableError(path) from exc
    key = relative.as_posix()
    try:
        key.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise PathNotRepresentableError(path) from exc
    return key


def read_text(path: Path) -> str:
    try:
        return path.read_bytes().decode("utf-8")
    except UnicodeDecodeError as exc:
        raise LoadError(path, "content is not valid UTF-8") from exc
    except OSError as exc:
        raise LoadError(path, str(exc)) from exc


def load_file(path: Path, prefix: Path) -> SourceFile:
    """Read one file and return its parsed record."""
    LOGGER.debug("Path: %s", path)
    contents = read_text(path)
    record = SourceFile(path=relative_key(path, prefix), contents=contents)
    record.parse()
    return record


def iter_files_from_dir(
    root: Path,
    extensions: Collection[str],
    prefix: Path | None = None,
    *,
    on_error: OnError = "raise",
) -> Iterator[SourceFile]:
    """Yield parsed records for every allowed file under ``root``.

    With ``on_error="skip"`` unreadable or unrepresentable entries are logged
    and skipped; otherwise the first failure propagates.
    """
    base = prefix if prefix is not None else root
    for path in iter_source_paths(root, extensions):
        try:
            yield load_file(path, base)
        except CodeproseError as exc:
            if on_error != "skip":
                raise
            LOGGER.warning("Skipping %s: %s", path, exc)


def load_files_from_dir(
    root: Path,
    extensions: Collection[str],
    prefix: Path | None = None,
    *,
    on_error: OnError = "raise",
) -> List[SourceFile]:
    """Collect parsed records for every allowed file under ``root``."""
    return list(iter_files_from_dir(root, extensions, prefix, on_error=on_error))
