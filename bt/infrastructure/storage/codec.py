"""Markdown record codec.

A task file is YAML frontmatter between ``---`` fences, an optional free-text
body, and an optional ``## Log`` section whose entries look like::

    ### 2025-11-26T23:41:41Z Ada Lovelace

    Message text, possibly over several lines.

The task id is not stored in the file; it is the filename stem.

Free text may contain lines that look like structure. A body line reading
``## Log`` and a message line starting with ``### `` are written with one
extra leading backslash, which the decoder removes again. In hand-edited
files a ``### `` line that is not a valid entry header is kept as message
text.
"""

import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from bt.domain.shared import Err, MalformedRecord, Ok, Result
from bt.domain.task import Frontmatter, LogEntry, Task, TaskId

FENCE = "---"
LOG_HEADING = "## Log"
ENTRY_MARKER = "### "

_RFC3339 = re.compile(
    r"\d{4}-\d{2}-\d{2}[Tt ]\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:[Zz]|[+-]\d{2}:\d{2})"
)
_ENTRY_HEADER = re.compile(rf"{re.escape(ENTRY_MARKER)}(\S+) +(\S.*?)\s*")

# Lines carrying any number of escaping backslashes before the marker
_ESCAPED_HEADING = re.compile(rf"\\*{re.escape(LOG_HEADING)}\s*")
_ESCAPED_MARKER = re.compile(rf"\\*{re.escape(ENTRY_MARKER)}")


def format_timestamp(value: datetime) -> str:
    """RFC 3339 in UTC with a ``Z`` suffix."""
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


def parse_timestamp(text: str) -> datetime:
    """Parse an RFC 3339 timestamp; naive values are taken as UTC."""
    value = datetime.fromisoformat(text.strip())
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _is_log_heading(line: str) -> bool:
    return line.rstrip() == LOG_HEADING


def _escape_body_line(line: str) -> str:
    return "\\" + line if _ESCAPED_HEADING.fullmatch(line) else line


def _unescape_body_line(line: str) -> str:
    if line.startswith("\\") and _ESCAPED_HEADING.fullmatch(line):
        return line[1:]
    return line


def _escape_message_line(line: str) -> str:
    return "\\" + line if _ESCAPED_MARKER.match(line) else line


def parse_entry_header(line: str) -> tuple[datetime, str] | None:
    """``(timestamp, author)`` for a ``### <RFC3339> <author>`` line, else None."""
    match = _ENTRY_HEADER.fullmatch(line)
    if match is None or not _RFC3339.fullmatch(match.group(1)):
        return None
    try:
        return parse_timestamp(match.group(1)), match.group(2)
    except ValueError:
        return None


# =============================================================================
# Decoding
# =============================================================================


def _split_frontmatter(text: str) -> tuple[str, list[str]] | None:
    lines = text.lstrip("\ufeff").split("\n")
    if lines[0].rstrip() != FENCE:
        return None
    for index in range(1, len(lines)):
        if lines[index].rstrip() == FENCE:
            return "\n".join(lines[1:index]), lines[index + 1 :]
    return None


def _split_log(lines: list[str]) -> tuple[str, list[str]]:
    for index, line in enumerate(lines):
        if _is_log_heading(line):
            body_lines, log_lines = lines[:index], lines[index + 1 :]
            break
    else:
        body_lines, log_lines = lines, []
    body = "\n".join(_unescape_body_line(line) for line in body_lines)
    return body, log_lines


def parse_log(lines: list[str]) -> list[LogEntry]:
    """Parse the lines following ``## Log`` into entries.

    Raises:
        ValueError: If text precedes the first entry header.
    """
    entries: list[LogEntry] = []
    header: tuple[datetime, str] | None = None
    message: list[str] = []

    def flush() -> None:
        if header is not None:
            entries.append(
                LogEntry(timestamp=header[0], author=header[1], message="\n".join(message))
            )

    for line in lines:
        parsed = parse_entry_header(line) if line.startswith(ENTRY_MARKER) else None
        if parsed is not None:
            flush()
            header = parsed
            message = []
        elif header is None:
            if line.strip():
                raise ValueError(f"log text outside an entry: {line!r}")
        elif line.startswith("\\") and _ESCAPED_MARKER.match(line):
            message.append(line[1:])
        else:
            message.append(line)
    flush()
    return entries


def decode_task(task_id: TaskId, text: str, location: Path) -> Result[Task, MalformedRecord]:
    """Turn file content into a Task.

    Args:
        task_id: Id taken from the filename.
        text: Full file content.
        location: Path used in error messages.

    Returns:
        Ok(Task), or Err(MalformedRecord) describing the first problem found.
    """
    split = _split_frontmatter(text)
    if split is None:
        return Err(MalformedRecord(location, "missing '---' frontmatter block"))
    raw_frontmatter, rest = split

    try:
        data = yaml.safe_load(raw_frontmatter) or {}
    except yaml.YAMLError as e:
        return Err(MalformedRecord(location, f"invalid YAML frontmatter: {e}"))
    if not isinstance(data, dict):
        return Err(MalformedRecord(location, "frontmatter is not a mapping"))

    try:
        frontmatter = Frontmatter.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "frontmatter"
        return Err(MalformedRecord(location, f"{field}: {first['msg']}"))

    body, log_lines = _split_log(rest)
    try:
        log = parse_log(log_lines)
    except (ValueError, ValidationError) as e:
        return Err(MalformedRecord(location, str(e)))

    return Ok(Task(id=task_id, frontmatter=frontmatter, body=body, log=log))


# =============================================================================
# Encoding
# =============================================================================


def _frontmatter_data(frontmatter: Frontmatter) -> dict[str, Any]:
    data: dict[str, Any] = {
        "title": frontmatter.title,
        "priority": frontmatter.priority.value,
        "tags": list(frontmatter.tags),
        "blocked_by": [str(blocker) for blocker in frontmatter.blocked_by],
        "created": format_timestamp(frontmatter.created),
        "updated": format_timestamp(frontmatter.updated),
    }
    if frontmatter.author is not None:
        data["author"] = frontmatter.author
    return data


def encode_task(task: Task) -> str:
    """Render a Task as markdown file content."""
    header = yaml.safe_dump(
        _frontmatter_data(task.frontmatter),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=None,
    )
    parts = [f"{FENCE}\n{header}{FENCE}\n"]
    if task.body:
        body = "\n".join(_escape_body_line(line) for line in task.body.split("\n"))
        parts.append(f"\n{body}\n")
    if task.log:
        parts.append(f"\n{LOG_HEADING}\n")
        for entry in task.log:
            parts.append(
                f"\n{ENTRY_MARKER}{format_timestamp(entry.timestamp)} {entry.author}\n"
            )
            if entry.message:
                message = "\n".join(
                    _escape_message_line(line) for line in entry.message.split("\n")
                )
                parts.append(f"\n{message}\n")
    return "".join(parts)
