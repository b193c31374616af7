"""Extraction of quoted string literals from Ruby script sources."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ScriptStrings:
    """Literal contents of a script, in source order.

    ``ranges[i]`` is the ``(start, end)`` slice of ``strings[i]`` inside the
    source, populated only when ranges were requested.
    """
    strings: list[str] = field(default_factory=list)
    ranges: list[tuple[int, int]] = field(default_factory=list)


def _iter_lines(source: str):
    """Yield lines with their LF terminators, like Ruby's each_line."""
    start = 0
    while start < len(source):
        end = source.find("\n", start)
        if end == -1:
            yield source[start:]
            return
        yield source[start:end + 1]
        start = end + 1


def _is_escaped(line: str, index: int) -> bool:
    backslashes = 0
    while index - backslashes - 1 >= 0 and line[index - backslashes - 1] == "\\":
        backslashes += 1
    return backslashes % 2 == 1


def extract_strings(source: str, capture_ranges: bool = False) -> ScriptStrings:
    """Collect the contents of ``"..."`` and ``'...'`` literals.

    Full-line ``#`` comments, trailing ``#`` comments and ``=begin``/``=end``
    blocks are skipped. A literal may span lines; its CRLF and LF line breaks
    are normalized to ``\\n`` in the returned text. Empty literals are
    dropped, and so are repeated ones unless ranges are captured.

    Args:
        source: Decoded script text.
        capture_ranges: Record the source slice of every literal, repeats
            included, so each occurrence can be replaced in place.
    """
    result = ScriptStrings()
    seen: set[str] = set()
    inside_string = False
    inside_comment = False
    quote = ""
    start = 0
    offset = 0

    for line in _iter_lines(source):
        trimmed = line.strip()

        if not inside_string:
            if trimmed.startswith("#"):
                offset += len(line)
                continue
            if trimmed.startswith("=begin"):
                inside_comment = True
            elif trimmed.startswith("=end"):
                inside_comment = False

        if inside_comment:
            offset += len(line)
            continue

        for i, char in enumerate(line):
            if not inside_string and char == "#":
                break
            if not inside_string and char in ("\"", "'"):
                inside_string = True
                quote = char
                start = offset + i + 1
            elif inside_string and char == quote and not _is_escaped(line, i):
                end = offset + i
                text = source[start:end].replace("\r\n", "\n")
                if text and (capture_ranges or text not in seen):
                    seen.add(text)
                    result.strings.append(text)
                    if capture_ranges:
                        result.ranges.append((start, end))
                inside_string = False
                quote = ""

        offset += len(line)

    return result


def splice(source: str, replacements: list[tuple[tuple[int, int], str]]) -> str:
    """Replace source slices, applying the rightmost one first so earlier offsets stay valid."""
    for (start, end), text in sorted(replacements, key=lambda r: r[0][0], reverse=True):
        source = source[:start] + text + source[end:]
    return source
