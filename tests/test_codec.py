# tests/test_codec.py

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from bt.domain.shared import Err, MalformedRecord, Ok
from bt.domain.task import LogEntry, Priority, Task, TaskId
from bt.infrastructure.storage import decode_task, encode_task

LOC = Path("/repo/.tasks/open/abc.md")

RECORD = """---
title: Write the lexer
priority: High
tags: [parser, Core]
blocked_by: [3f2a]
created: 2025-11-26T23:41:41Z
updated: 2025-11-27T08:00:00+01:00
author: Ada
---

Tokens first.

## Log

### 2025-11-26T23:50:00Z Ada Lovelace

Started on keywords.
Second line.

### 2025-11-27T07:00:00Z Bob

Done.
"""


def test_decode_full_record() -> None:
    result = decode_task(TaskId("abc"), RECORD, LOC)
    assert isinstance(result, Ok)
    task = result.value

    assert task.id == TaskId("abc")
    assert task.title == "Write the lexer"
    assert task.priority == Priority.HIGH
    assert task.frontmatter.tags == ["parser", "Core"]
    assert task.blocked_by == [TaskId("3f2a")]
    assert task.frontmatter.updated == datetime(2025, 11, 27, 7, 0, tzinfo=UTC)
    assert task.body == "Tokens first."
    assert [e.author for e in task.log] == ["Ada Lovelace", "Bob"]
    assert task.log[0].message == "Started on keywords.\nSecond line."
    assert task.log[0].summary == "Started on keywords."


def test_encode_then_decode_keeps_log() -> None:
    task = Task.new("T", "Ada", body="Body", now=datetime(2024, 1, 1, tzinfo=UTC))
    task = task.with_log(
        LogEntry(timestamp=datetime(2024, 1, 2, tzinfo=UTC), author="Ada", message="hi")
    )
    decoded = decode_task(task.id, encode_task(task), LOC)
    assert isinstance(decoded, Ok)
    assert decoded.value == task


def test_missing_frontmatter_is_malformed() -> None:
    result = decode_task(TaskId("abc"), "just text\n", LOC)
    assert isinstance(result, Err)
    assert isinstance(result.error, MalformedRecord)


def test_missing_title_is_malformed() -> None:
    text = "---\npriority: low\ncreated: 2024-01-01T00:00:00Z\nupdated: 2024-01-01T00:00:00Z\n---\n"
    result = decode_task(TaskId("abc"), text, LOC)
    assert isinstance(result, Err)
    assert "title" in str(result.error)


def test_text_before_first_log_entry_is_malformed() -> None:
    text = (
        "---\ntitle: T\ncreated: 2024-01-01T00:00:00Z\nupdated: 2024-01-01T00:00:00Z\n---\n"
        "\n## Log\n\n### yesterday Ada\n\nhi\n"
    )
    result = decode_task(TaskId("abc"), text, LOC)
    assert isinstance(result, Err)
    assert "outside an entry" in str(result.error)


def test_hand_written_subheading_stays_in_message() -> None:
    text = (
        "---\ntitle: T\ncreated: 2024-01-01T00:00:00Z\nupdated: 2024-01-01T00:00:00Z\n---\n"
        "\n## Log\n\n### 2024-01-02T00:00:00Z Ada\n\nProgress\n### Step 1\ndone\n"
    )
    result = decode_task(TaskId("abc"), text, LOC)
    assert isinstance(result, Ok)
    assert len(result.value.log) == 1
    assert result.value.log[0].message == "Progress\n### Step 1\ndone"


def test_crlf_record_decodes() -> None:
    result = decode_task(TaskId("abc"), RECORD.replace("\n", "\r\n"), LOC)
    assert isinstance(result, Ok)
    assert result.value.body == "Tokens first."
    assert [e.author for e in result.value.log] == ["Ada Lovelace", "Bob"]


def _round_trip(task: Task) -> Task:
    decoded = decode_task(task.id, encode_task(task), LOC)
    assert isinstance(decoded, Ok), decoded
    return decoded.value


def test_body_line_that_looks_like_log_heading_round_trips() -> None:
    task = Task.new("T", "Ada", body="Intro\n## Log\nnotes about logging")
    text = encode_task(task)
    assert "\n\\## Log\n" in text

    assert _round_trip(task) == task


def test_message_line_that_looks_like_entry_header_round_trips() -> None:
    task = Task.new("T", "Ada", now=datetime(2024, 1, 1, tzinfo=UTC)).with_log(
        LogEntry(
            timestamp=datetime(2024, 1, 2, tzinfo=UTC),
            author="Ada",
            message="Progress\n### 2024-01-03T00:00:00Z Eve\n### Step 1\ndone",
        )
    )
    decoded = _round_trip(task)
    assert decoded == task
    assert len(decoded.log) == 1


def test_literal_backslashes_before_markers_survive() -> None:
    body = "\\## Log\n\\\\## Log"
    message = "\\### not a header"
    task = Task.new("T", "Ada", body=body, now=datetime(2024, 1, 1, tzinfo=UTC)).with_log(
        LogEntry(timestamp=datetime(2024, 1, 2, tzinfo=UTC), author="Ada", message=message)
    )
    decoded = _round_trip(task)
    assert decoded.body == body
    assert decoded.log[0].message == message


def test_blank_lines_inside_text_survive() -> None:
    task = Task.new("T", "Ada", body="one\n\n\ntwo", now=datetime(2024, 1, 1, tzinfo=UTC))
    task = task.with_log(
        LogEntry(timestamp=datetime(2024, 1, 2, tzinfo=UTC), author="Ada", message="a\n\nb  ")
    )
    decoded = _round_trip(task)
    assert decoded.body == "one\n\n\ntwo"
    assert decoded.log[0].message == "a\n\nb  "
