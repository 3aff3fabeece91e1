import re
import tomllib
from dataclasses import dataclass
from typing import Any

from hashcards.domain.constants import SEPARATOR
from hashcards.domain.errors import ParserError

# ---------- Line splitting ----------


def split_lines(text: str) -> list[str]:
    """Split on '\\n', strip a trailing '\\r', and drop the empty tail after a final newline."""
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


# ---------- Frontmatter helpers ----------

_TOML_LINE_RE = re.compile(r"at line (\d+)")


@dataclass(frozen=True)
class DeckMetadata:
    """Settings read from a deck file's header block. Only `name` is recognised."""

    name: str | None = None


def extract_frontmatter(text: str, source_path: str = "") -> tuple[DeckMetadata, str, int]:
    """Split a deck file into its TOML header metadata and body.
    Uses line-by-line parsing instead of regex for reliability.

    Returns (metadata, body, body_line_offset) where body_line_offset is the
    0-based line number of the body's first line in the original text.
    A file without a header is returned unchanged with offset 0.
    """
    # Handle potential BOM (Byte Order Mark)
    text = text.lstrip("\ufeff")

    lines = text.split("\n")

    # Check for opening ---
    if not lines or lines[0].strip() != SEPARATOR:
        return DeckMetadata(), text, 0

    # Find closing ---
    toml_end_line = None
    for i, line in enumerate(lines[1:], start=1):
        if line.strip() == SEPARATOR:
            toml_end_line = i
            break

    if toml_end_line is None:
        raise ParserError(
            "Frontmatter opening '---' found but no closing '---'.", source_path, 0
        )

    raw = "\n".join(line.rstrip("\r") for line in lines[1:toml_end_line])
    body = "\n".join(lines[toml_end_line + 1 :])
    offset = 1  # Opening --- is line 0, TOML starts at line 1

    try:
        meta = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as e:
        match = _TOML_LINE_RE.search(str(e))
        line = int(match.group(1)) - 1 + offset if match else offset
        raise ParserError(f"Failed to parse TOML frontmatter: {e}.", source_path, line) from e

    return _to_metadata(meta, source_path), body, toml_end_line + 1


def _to_metadata(meta: dict[str, Any], source_path: str) -> DeckMetadata:
    name = meta.get("name")
    if name is not None and not isinstance(name, str):
        raise ParserError(
            "Failed to parse TOML frontmatter: 'name' must be a string.", source_path, 1
        )
    return DeckMetadata(name=name)
