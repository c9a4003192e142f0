"""Line-oriented sentence extractors for source code, markdown and TOML.

Each extractor turns the full text of one file into an ordered list of
"sentences": the human-readable parts worth embedding. Extraction is a pure
function of the text and the file extension; cross-line state (block comments,
code fences) is an explicit value threaded through :func:`_fold_lines`.

The matching is deliberately textual. A ``//`` inside a string literal counts
as a comment and nested block comments are not tracked.
"""

from __future__ import annotations

import enum
from pathlib import PurePath
from typing import Callable, Dict, List, Optional, Tuple, TypeVar

S = TypeVar("S")

# A step consumes one stripped line and returns the next state plus an optional sentence.
Step = Callable[[S, str], Tuple[S, Optional[str]]]


class FileKind(enum.Enum):
    SOURCE = "source"
    MARKDOWN = "markdown"
    CONFIG = "config"
    PASSTHROUGH = "passthrough"


_KIND_BY_EXTENSION: Dict[str, FileKind] = {
    "rs": FileKind.SOURCE,
    "md": FileKind.MARKDOWN,
    "toml": FileKind.CONFIG,
}


def file_extension(path: PurePath | str) -> str | None:
    """Return the text after the last dot of the final path segment, if any.

    Names with only a leading dot (``.gitignore``) have no extension. Segments
    are split by the host's path rules, so on POSIX a backslash is an ordinary
    name character.
    """
    name = PurePath(path).name
    stem, dot, ext = name.rpartition(".")
    if not dot or not stem:
        return None
    return ext


def classify(path: PurePath | str) -> FileKind:
    """Map a file path to the extractor variant used for its contents."""
    ext = file_extension(path)
    if ext is None:
        return FileKind.PASSTHROUGH
    return _KIND_BY_EXTENSION.get(ext, FileKind.PASSTHROUGH)


def split_lines(text: str) -> List[str]:
    """Split on ``\\n`` only, dropping a trailing ``\\r`` and a final empty line."""
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def _fold_lines(step: Step, initial: S, text: str) -> List[str]:
    state = initial
    sentences: List[str] = []
    for raw in split_lines(text):
        state, sentence = step(state, raw.strip())
        if sentence is not None:
            sentences.append(sentence)
    return sentences


class CommentState(enum.Enum):
    NORMAL = enum.auto()
    IN_BLOCK_COMMENT = enum.auto()


_LINE_MARKERS = ("///", "//!", "//")


def source_comment_step(
    state: CommentState, line: str
) -> Tuple[CommentState, Optional[str]]:
    """Advance the comment state machine by one stripped line."""
    if state is CommentState.IN_BLOCK_COMMENT:
        end = line.find("*/")
        if end == -1:
            return CommentState.IN_BLOCK_COMMENT, line
        return CommentState.NORMAL, line[:end]

    # Doc markers first: "///" and "//!" would also match a bare "//".
    for marker in _LINE_MARKERS:
        pos = line.find(marker)
        if pos != -1:
            return CommentState.NORMAL, line[pos + len(marker):].strip()

    start = line.find("/*")
    if start == -1:
        return CommentState.NORMAL, None
    after = line[start + 2:]
    end = after.find("*/")
    if end != -1:
        return CommentState.NORMAL, after[:end]
    return CommentState.IN_BLOCK_COMMENT, after


def extract_source_comments(text: str) -> List[str]:
    """Collect doc, line and block comments from source code."""
    return _fold_lines(source_comment_step, CommentState.NORMAL, text)


class FenceState(enum.Enum):
    PROSE = enum.auto()
    IN_CODE_BLOCK = enum.auto()


def markdown_step(state: FenceState, line: str) -> Tuple[FenceState, Optional[str]]:
    if line.startswith("```"):
        toggled = FenceState.IN_CODE_BLOCK if state is FenceState.PROSE else FenceState.PROSE
        return toggled, None
    if state is FenceState.IN_CODE_BLOCK or not line or line.startswith("#"):
        return state, None
    return state, line


def extract_markdown(text: str) -> List[str]:
    """Collect prose lines, skipping headings, blank lines and fenced code."""
    return _fold_lines(markdown_step, FenceState.PROSE, text)


def config_line(line: str) -> Optional[str]:
    """Normalize one stripped TOML line, or return None for a blank one."""
    if not line:
        return None
    if line.startswith("#"):
        return f"Comment: {line[1:].strip()}"
    if line.startswith("[") and line.endswith("]"):
        return f"Table: {line[1:-1].strip()}"
    key, sep, value = line.partition("=")
    if sep:
        return f"{key.strip()} = {value.strip()}"
    return line


def extract_config(text: str) -> List[str]:
    """Normalize TOML comments, table headers and key/value pairs."""
    return _fold_lines(lambda state, line: (state, config_line(line)), None, text)


def extract_passthrough(text: str) -> List[str]:
    return [text]


EXTRACTORS: Dict[FileKind, Callable[[str], List[str]]] = {
    FileKind.SOURCE: extract_source_comments,
    FileKind.MARKDOWN: extract_markdown,
    FileKind.CONFIG: extract_config,
    FileKind.PASSTHROUGH: extract_passthrough,
}


def extract_sentences(path: PurePath | str, text: str) -> List[str]:
    """Run the extractor selected by ``path``'s extension over ``text``."""
    return EXTRACTORS[classify(path)](text)
