"""Output line normalisation.

The test tool indents everything a test logs by one 4-space unit per
nesting level (plus one for the test itself) so that it lines up with the
``=== RUN`` / ``--- PASS`` markers.  Only that tool-added prefix is
removed here; indentation the test author printed is left alone.
"""

from __future__ import annotations

# Width of one tool-injected indentation unit
INDENT_UNIT = "    "


def _leading_spaces(line: str) -> int:
    """Length of the run of space characters at the start of *line*.

    Returns -1 for a line made up only of spaces (or an empty line).
    """
    stripped = line.lstrip(" ")
    if not stripped:
        return -1
    return len(line) - len(stripped)


def trim_prefix_spaces(line: str, level: int) -> str:
    """Trim the tool-added indentation of an output line.

    If the leading run of spaces is a multiple of the indent unit the line
    is assumed to come from the test harness, and up to ``level + 1`` units
    are removed.  Lines indented by anything else are left as they are.
    Finally a single leading tab is removed if present.

    Args:
        line: Raw output line.
        level: Nesting level of the test that produced the line.

    Returns:
        The line without tool-added indentation.
    """
    if _leading_spaces(line) % len(INDENT_UNIT) == 0:
        for _ in range(level + 1):
            if not line.startswith(INDENT_UNIT):
                break
            line = line[len(INDENT_UNIT):]
    if line.startswith("\t"):
        line = line[1:]
    return line
