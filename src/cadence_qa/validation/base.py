"""Base types and helpers for the validation checks.

Defines:
- ValidationCheck: Protocol every check implements
- mask_non_code: blanks comments and string literals for scanning
- location_at / make_issue: position helpers for building issues
- find_block_end / top_level_text: brace matching over masked text
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from cadence_qa.models import IssueLocation, Severity, ValidationIssue

if TYPE_CHECKING:
    from cadence_qa.models import GenerationContext, ValidationResult


class ValidationCheck(Protocol):
    """Protocol for candidate-text checks.

    Checks must be deterministic and side-effect free: the same text and
    context always produce the same ValidationResult.
    """

    @property
    def check_id(self) -> str:
        """Unique identifier for this check (e.g. "undefined-scan")."""
        ...

    def check(self, code: str, context: GenerationContext) -> ValidationResult:
        """Run the check against a candidate text."""
        ...


def mask_non_code(code: str) -> str:
    """Replace comment and string-literal characters with spaces.

    The result has the same length and line structure as the input, so
    offsets found in the masked text are valid offsets into the original.
    Unterminated strings and block comments are masked to the end of input.
    """
    out: list[str] = []
    i = 0
    n = len(code)
    while i < n:
        ch = code[i]
        nxt = code[i + 1] if i + 1 < n else ""
        if ch == "/" and nxt == "/":
            end = code.find("\n", i)
            end = n if end == -1 else end
            out.append(" " * (end - i))
            i = end
        elif ch == "/" and nxt == "*":
            end = code.find("*/", i + 2)
            end = n if end == -1 else end + 2
            out.append(_blank(code[i:end]))
            i = end
        elif ch == '"':
            j = i + 1
            while j < n and code[j] != '"' and code[j] != "\n":
                j += 2 if code[j] == "\\" else 1
            j = min(j, n)
            end = min(j + 1, n) if j < n and code[j] == '"' else j
            # Keep the quotes so `x = ""` still reads as an assignment
            out.append('"' + " " * (end - i - 2) + '"' if end - i >= 2 else " " * (end - i))
            i = end
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def _blank(text: str) -> str:
    return "".join("\n" if c == "\n" else " " for c in text)


def location_at(code: str, offset: int) -> IssueLocation:
    """Convert a character offset into a 1-based line/column location."""
    line = code.count("\n", 0, offset) + 1
    line_start = code.rfind("\n", 0, offset) + 1
    return IssueLocation(line=line, column=offset - line_start + 1)


def make_issue(
    code: str,
    offset: int,
    severity: Severity,
    issue_type: str,
    message: str,
    suggested_fix: str | None = None,
    auto_fixable: bool = False,
) -> ValidationIssue:
    return ValidationIssue(
        severity=severity,
        type=issue_type,
        location=location_at(code, offset),
        message=message,
        suggested_fix=suggested_fix,
        auto_fixable=auto_fixable,
    )


def iter_lines(code: str) -> list[tuple[int, str]]:
    """Return (start_offset, line_text) pairs for every line."""
    result: list[tuple[int, str]] = []
    offset = 0
    for line in code.split("\n"):
        result.append((offset, line))
        offset += len(line) + 1
    return result


def find_block_end(masked: str, open_index: int) -> int:
    """Return the index of the brace closing the one at open_index, or -1."""
    depth = 0
    for i in range(open_index, len(masked)):
        ch = masked[i]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
    return -1


def top_level_text(masked: str, open_index: int) -> str:
    """Text directly inside the block opened at open_index.

    Nested blocks are blanked, so a search only sees the block's own
    members. An unclosed block runs to the end of the text.
    """
    end = find_block_end(masked, open_index)
    end = len(masked) if end == -1 else end
    out: list[str] = []
    depth = 0
    for ch in masked[open_index:end]:
        if ch == "{":
            depth += 1
            out.append(" ")
        elif ch == "}":
            depth -= 1
            out.append(" ")
        else:
            out.append(ch if depth == 1 else " ")
    return "".join(out)
