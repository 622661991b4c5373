"""
Strict unified diff application.

Only single-file patches are supported. Hunks must apply exactly where their
header says: no fuzz, no offset search. Any context or removed line that does
not match the current file aborts the whole patch before anything is written.
"""
from __future__ import annotations
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ...errors import PreconditionError, ValidationError

_HUNK = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")

Line = Tuple[str, str]  # (op, text) with op in " ", "-", "+"


@dataclass
class Hunk:
    old_start: int
    old_len: int
    new_start: int
    new_len: int
    lines: List[Line] = field(default_factory=list)

    @property
    def header(self) -> str:
        return f"@@ -{self.old_start},{self.old_len} +{self.new_start},{self.new_len} @@"


@dataclass
class Patch:
    old_path: Optional[str] = None
    new_path: Optional[str] = None
    creates: bool = False
    hunks: List[Hunk] = field(default_factory=list)
    old_no_newline: bool = False  # "\ No newline at end of file" after a " " or "-" line
    new_no_newline: bool = False  # ... after a " " or "+" line

    @property
    def path(self) -> Optional[str]:
        return self.new_path or self.old_path


def _header_path(raw: str) -> Optional[str]:
    path = raw.split("\t", 1)[0].strip()
    if path == "/dev/null":
        return None
    if path.startswith(("a/", "b/")):
        path = path[2:]
    return path


def _mark_no_newline(patch: Patch, hunk: Hunk) -> None:
    if not hunk.lines:
        raise ValidationError(f"'\\ No newline at end of file' with no line before it in hunk {hunk.header}")
    op = hunk.lines[-1][0]
    if op in " -":
        patch.old_no_newline = True
    if op in " +":
        patch.new_no_newline = True


def parse_patch(text: str) -> Patch:
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()

    patch = Patch()
    i, n = 0, len(lines)

    while i < n and not lines[i].startswith("@@"):
        line = lines[i]
        if line.startswith("--- "):
            patch.old_path = _header_path(line[4:])
            patch.creates = patch.old_path is None
        elif line.startswith("+++ "):
            patch.new_path = _header_path(line[4:])
        i += 1
    if i == n:
        raise ValidationError("patch contains no hunks")

    while i < n:
        if not lines[i].strip() and all(not l.strip() for l in lines[i:]):
            break
        m = _HUNK.match(lines[i])
        if not m:
            raise ValidationError(f"expected a hunk header, found {lines[i]!r}")
        old_start, old_len, new_start, new_len = m.groups()
        hunk = Hunk(
            old_start=int(old_start),
            old_len=int(old_len) if old_len is not None else 1,
            new_start=int(new_start),
            new_len=int(new_len) if new_len is not None else 1,
        )
        i += 1

        old_seen = new_seen = 0
        while old_seen < hunk.old_len or new_seen < hunk.new_len:
            if i >= n:
                raise ValidationError(f"hunk {hunk.header} is truncated")
            line = lines[i]
            if line.startswith("\\"):
                _mark_no_newline(patch, hunk)
                i += 1
                continue
            # editors like to strip the single space of empty context lines
            op, body = (line[0], line[1:]) if line else (" ", "")
            if op == " ":
                old_seen += 1
                new_seen += 1
            elif op == "-":
                old_seen += 1
            elif op == "+":
                new_seen += 1
            else:
                raise ValidationError(f"unexpected line in hunk {hunk.header}: {line!r}")
            if old_seen > hunk.old_len or new_seen > hunk.new_len:
                raise ValidationError(f"hunk {hunk.header} has more lines than its header declares")
            hunk.lines.append((op, body))
            i += 1

        while i < n and lines[i].startswith("\\"):
            _mark_no_newline(patch, hunk)
            i += 1
        patch.hunks.append(hunk)

    return patch


def apply_patch(original: str, patch: Patch) -> Tuple[str, List[Line]]:
    """
    Return (new_text, display) where display is the merged view of the
    file: every line tagged " " (unchanged), "-" (removed) or "+" (added).
    """
    old_lines = original.split("\n")
    trailing_newline = original.endswith("\n") or original == ""
    if trailing_newline:
        old_lines.pop()

    result: List[str] = []
    display: List[Line] = []
    cursor = 0

    for number, hunk in enumerate(patch.hunks, start=1):
        start = hunk.old_start - 1 if hunk.old_len > 0 else hunk.old_start
        if start < cursor:
            raise PreconditionError(f"hunk {number} ({hunk.header}) overlaps the previous hunk")
        if start > len(old_lines):
            raise PreconditionError(
                f"hunk {number} ({hunk.header}) starts past the end of the file ({len(old_lines)} lines)"
            )

        for line in old_lines[cursor:start]:
            result.append(line)
            display.append((" ", line))

        pos = start
        for op, text in hunk.lines:
            if op in " -":
                found = old_lines[pos] if pos < len(old_lines) else None
                if found != text:
                    shown = "<end of file>" if found is None else repr(found)
                    raise PreconditionError(
                        f"hunk {number} ({hunk.header}) does not apply at line {pos + 1}: "
                        f"expected {text!r}, found {shown}"
                    )
                pos += 1
                if op == " ":
                    result.append(text)
            else:
                result.append(text)
            display.append((op, text))
        cursor = pos

    # the last line's newline is part of the pre-image once a hunk reaches it
    touches_end = cursor == len(old_lines)
    if touches_end and original and patch.old_no_newline == trailing_newline:
        expected = "no newline" if patch.old_no_newline else "a newline"
        raise PreconditionError(f"patch expects {expected} at the end of the file")

    for line in old_lines[cursor:]:
        result.append(line)
        display.append((" ", line))

    newline = not patch.new_no_newline if touches_end else trailing_newline
    new_text = "\n".join(result) + ("\n" if newline and result else "")
    return new_text, display


def diff_markers(display: List[Line]) -> str:
    """"-3,+4,+5" style list of changed lines in the displayed output."""
    return ",".join(f"{op}{i}" for i, (op, _) in enumerate(display, start=1) if op != " ")
