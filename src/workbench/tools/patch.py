"""Unified diff application.

apply_patch() runs four stages in a fixed order: line ending
normalization, HTML entity decoding, hex escape decoding, then hunk
application. Model output often arrives with its diff escaped for
transport (``&lt;div&gt;`` or ``\\x3c``); each decode stage assumes the
previous one already ran.

Hunks are matched like ``patch``/jsdiff: the old side of a hunk (context
plus removed lines) must equal the file at the header position, or at the
nearest position after the previous hunk when the header line numbers are
off. A hunk that matches nowhere raises PatchFailedError; nothing is ever
partially applied.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass

from workbench.errors import PatchFailedError

HUNK_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")
HEX_ESCAPE_RE = re.compile(r"\\x([0-9A-Fa-f]{2})")
NO_NEWLINE_MARKER = "\\ No newline at end of file"


@dataclass(frozen=True)
class HunkLine:
    op: str  # " ", "-" or "+"
    text: str
    no_newline: bool = False


@dataclass(frozen=True)
class Hunk:
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    lines: tuple[HunkLine, ...]

    @property
    def old_lines(self) -> list[str]:
        return [line.text for line in self.lines if line.op in " -"]

    @property
    def new_lines(self) -> list[str]:
        return [line.text for line in self.lines if line.op in " +"]

    @property
    def expected_index(self) -> int:
        # A pure insertion (-N,0) goes after line N.
        return self.old_start if self.old_count == 0 else self.old_start - 1


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def decode_entities(patch: str) -> str:
    return html.unescape(patch)


def decode_hex_escapes(patch: str) -> str:
    return HEX_ESCAPE_RE.sub(lambda m: chr(int(m.group(1), 16)), patch)


def parse_patch(patch: str) -> list[Hunk]:
    """Parse the hunks of a single-file unified diff.

    File headers (``---``/``+++``/``diff --git``) and anything outside a
    hunk are skipped. Each hunk body is read until the line counts from its
    header are satisfied; an empty body line counts as an empty context
    line.

    Raises:
        PatchFailedError: No hunks, a malformed header, an unknown line
            prefix, or a body shorter than its header declares.
    """
    lines = patch.split("\n")
    hunks: list[Hunk] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        i += 1
        if not line.startswith("@@"):
            continue
        match = HUNK_RE.match(line)
        if not match:
            raise PatchFailedError(f"Invalid hunk header: {line}")
        old_start = int(match.group(1))
        old_count = int(match.group(2) or "1")
        new_start = int(match.group(3))
        new_count = int(match.group(4) or "1")

        body: list[HunkLine] = []
        removed = added = 0
        while i < len(lines) and (removed < old_count or added < new_count):
            text = lines[i]
            op = text[0] if text else " "
            if op == "\\":
                i += 1
                if body:
                    body[-1] = HunkLine(body[-1].op, body[-1].text, no_newline=True)
                continue
            if op not in " -+":
                raise PatchFailedError(f"Unexpected line in hunk {len(hunks) + 1}: {text!r}")
            body.append(HunkLine(op, text[1:]))
            if op != "+":
                removed += 1
            if op != "-":
                added += 1
            i += 1
        # A trailing marker belongs to the hunk's last line.
        if i < len(lines) and lines[i].startswith("\\") and body:
            body[-1] = HunkLine(body[-1].op, body[-1].text, no_newline=True)
            i += 1

        if removed != old_count or added != new_count:
            raise PatchFailedError(
                f"Hunk {len(hunks) + 1} is truncated: expected -{old_count} +{new_count} "
                f"lines, found -{removed} +{added}."
            )
        hunks.append(Hunk(old_start, old_count, new_start, new_count, tuple(body)))

    if not hunks:
        raise PatchFailedError("The diff contains no hunks.")
    return hunks


def _matches(lines: list[str], block: list[str], pos: int) -> bool:
    return lines[pos:pos + len(block)] == block


def _find_position(lines: list[str], block: list[str], expected: int, lowest: int) -> int | None:
    """Nearest position >= lowest where block matches, preferring expected."""
    highest = len(lines) - len(block)
    if highest < lowest:
        return None
    if not block:
        return min(max(expected, lowest), len(lines))
    distance = 0
    while True:
        forward = expected + distance
        backward = expected - distance
        if forward > highest and backward < lowest:
            return None
        if lowest <= forward <= highest and _matches(lines, block, forward):
            return forward
        if distance and lowest <= backward <= highest and _matches(lines, block, backward):
            return backward
        distance += 1


def apply_hunks(lines: list[str], hunks: list[Hunk]) -> tuple[list[str], bool | None]:
    """Apply parsed hunks to lines.

    Returns the new lines and the new end-of-file newline state, or None
    when the hunks do not say anything about it.
    """
    out: list[str] = []
    src_index = 0
    drift = 0
    eof_newline: bool | None = None

    for idx, hunk in enumerate(hunks, start=1):
        old_block = hunk.old_lines
        expected = hunk.expected_index + drift
        pos = _find_position(lines, old_block, expected, src_index)
        if pos is None:
            raise PatchFailedError(
                f"Hunk {idx} does not match the file content near line {hunk.old_start}."
            )
        drift = pos - hunk.expected_index
        out.extend(lines[src_index:pos])
        out.extend(hunk.new_lines)
        src_index = pos + len(old_block)

        if src_index == len(lines):
            new_side = [line for line in hunk.lines if line.op in " +"]
            if new_side:
                eof_newline = not new_side[-1].no_newline

    out.extend(lines[src_index:])
    return out, eof_newline


def apply_patch(original: str, patch: str) -> str:
    """Apply a unified diff to text and return the new text.

    Raises:
        PatchFailedError: If the diff is malformed or does not match.
    """
    original = normalize_newlines(original)
    patch = normalize_newlines(patch)
    patch = decode_entities(patch)
    patch = decode_hex_escapes(patch)

    hunks = parse_patch(patch)
    ends_with_newline = original.endswith("\n")
    lines = original.split("\n") if original else []
    if ends_with_newline:
        lines.pop()

    new_lines, eof_newline = apply_hunks(lines, hunks)
    if eof_newline is not None:
        ends_with_newline = eof_newline
    if not new_lines:
        return ""
    return "\n".join(new_lines) + ("\n" if ends_with_newline else "")
