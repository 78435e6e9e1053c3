# tests/test_cli.py

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from bt import __version__
from bt.domain.shared import Ok
from bt.domain.task import TaskId
from bt.infrastructure.storage import Store
from bt.interfaces.cli import app

runner = CliRunner()


@pytest.fixture()
def bt(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Invoke the CLI against an initialized repository in tmp_path."""
    monkeypatch.setenv("BT_AUTHOR", "tester")
    monkeypatch.delenv("BT_ROOT", raising=False)
    monkeypatch.chdir(tmp_path)
    assert runner.invoke(app, ["init"]).exit_code == 0

    def _invoke(*args: str, input: str | None = None):
        return runner.invoke(app, list(args), input=input)

    return _invoke


def _new(bt, title: str, *extra: str) -> str:
    result = bt("new", title, *extra)
    assert result.exit_code == 0, result.output
    return result.stdout.splitlines()[0].strip()


def test_version() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_commands_outside_repository_fail(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".git").mkdir()
    result = runner.invoke(app, ["list"])
    assert result.exit_code == 1
    assert "bt init" in result.output


def test_root_option_selects_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BT_AUTHOR", "tester")
    project = tmp_path / "project"
    project.mkdir()
    assert runner.invoke(app, ["--root", str(project), "init"]).exit_code == 0
    assert (project / ".tasks" / "open").is_dir()

    created = runner.invoke(app, ["--root", str(project), "new", "Elsewhere"])
    assert created.exit_code == 0
    listed = runner.invoke(app, ["--root", str(project), "list"])
    assert "Elsewhere" in listed.stdout


def test_new_list_show(bt) -> None:
    task_id = _new(bt, "Write the lexer", "-p", "high", "-t", "parser,core", "--body", "Tokens")

    listed = bt("list")
    assert listed.exit_code == 0
    assert "Write the lexer" in listed.stdout
    assert task_id[0] in listed.stdout

    shown = bt("show", task_id[:6], "--json")
    assert shown.exit_code == 0
    data = json.loads(shown.stdout)
    assert data["id"] == task_id
    assert data["priority"] == "high"
    assert data["tags"] == ["parser", "core"]
    assert data["body"] == "Tokens"
    assert data["status"] == "open"


def test_new_reads_piped_body(bt) -> None:
    result = bt("new", "Piped", input="From stdin\n")
    assert result.exit_code == 0
    task_id = result.stdout.splitlines()[0].strip()
    shown = json.loads(bt("show", task_id, "--json").stdout)
    assert shown["body"] == "From stdin"


def test_close_unblocks_dependent_and_ready_reflects_it(bt) -> None:
    blocker = _new(bt, "Blocker")
    waiting = _new(bt, "Waiting", "-b", blocker)

    ready = bt("ready")
    assert "Blocker" in ready.stdout
    assert "Waiting" not in ready.stdout

    closed = bt("close", blocker, "-r", "shipped")
    assert closed.exit_code == 0

    ready = bt("ready")
    assert "Waiting" in ready.stdout
    shown = json.loads(bt("show", waiting, "--json").stdout)
    assert shown["status"] == "open"


def test_batch_continues_past_bad_id(bt) -> None:
    first = _new(bt, "First")
    second = _new(bt, "Second")

    result = bt("start", first, "nope", second)
    assert result.exit_code == 1
    assert "nope" in result.output

    for task_id in (first, second):
        assert json.loads(bt("show", task_id, "--json").stdout)["status"] == "in-progress"


def test_start_stop_and_invalid_transition(bt) -> None:
    task_id = _new(bt, "Work")
    assert bt("start", task_id).exit_code == 0
    assert bt("stop", task_id).exit_code == 0
    result = bt("stop", task_id)
    assert result.exit_code == 1
    assert "Cannot move" in result.output


def test_next_picks_critical(bt) -> None:
    _new(bt, "Low", "-p", "low")
    _new(bt, "Urgent", "-p", "critical")
    result = bt("next")
    assert result.exit_code == 0
    assert "Urgent" in result.stdout
    assert "Low" not in result.stdout


def test_tree_orders_chain(bt) -> None:
    a = _new(bt, "Alpha")
    b = _new(bt, "Beta", "-b", a)
    _new(bt, "Gamma", "-b", f"{a},{b}")

    result = bt("tree")
    assert result.exit_code == 0
    lines = [line for line in result.stdout.splitlines() if line.strip()]
    assert len(lines) == 3
    assert "Alpha" in lines[0]
    assert "Beta" in lines[1] and "└── " in lines[1]
    assert "Gamma" in lines[2] and "blocked by:" in lines[2]


def test_tree_reports_cycle(bt, tmp_path: Path) -> None:
    a = _new(bt, "Alpha")
    b = _new(bt, "Beta", "-b", a)

    # The CLI refuses cycles, so write one directly
    store = Store(tmp_path)
    found = store.find_and_load(a)
    assert isinstance(found, Ok)
    location, task = found.value
    task.frontmatter.blocked_by.append(TaskId(b))
    store.save(task, location)

    result = bt("tree")
    assert result.exit_code == 0
    assert "Dependency cycle" in result.output
    assert "Alpha" in result.output and "Beta" in result.output


def test_block_refuses_cycle(bt) -> None:
    a = _new(bt, "Alpha")
    b = _new(bt, "Beta", "-b", a)
    result = bt("block", a, b)
    assert result.exit_code == 1
    assert "cycle" in result.output


def test_log_activity_and_context(bt) -> None:
    a = _new(bt, "Alpha")
    b = _new(bt, "Beta", "-b", a)

    assert bt("log", a, "Made", "progress").exit_code == 0
    activity = bt("activity")
    assert "Made progress" in activity.stdout

    context = bt("context", b)
    assert context.exit_code == 0
    assert "Alpha" in context.stdout
    assert "Ready to work on: no" in context.stdout


def test_update_and_describe(bt) -> None:
    task_id = _new(bt, "Old")
    assert bt("update", task_id, "--title", "New", "--add-tag", "x").exit_code == 0
    assert bt("describe", task_id, "Fresh", "words").exit_code == 0

    shown = json.loads(bt("show", task_id, "--json").stdout)
    assert shown["title"] == "New"
    assert shown["tags"] == ["x"]
    assert shown["body"] == "Fresh words"


def test_ambiguous_prefix_lists_candidates(bt, tmp_path: Path) -> None:
    store = Store(tmp_path)
    for suffix in ("1", "2"):
        (store.tasks_dir / "open" / f"ab{suffix}.md").write_text(
            "---\ntitle: T\ncreated: 2024-01-01T00:00:00Z\nupdated: 2024-01-01T00:00:00Z\n---\n",
            encoding="utf-8",
        )
    result = bt("show", "ab")
    assert result.exit_code == 1
    assert "ab1" in result.output and "ab2" in result.output


def test_import_command(bt, tmp_path: Path) -> None:
    plan = tmp_path / "plan.yaml"
    plan.write_text("- {ref: a, title: A}\n- {title: B, blocked_by: [a]}\n", encoding="utf-8")
    result = bt("import", str(plan))
    assert result.exit_code == 0
    assert "Imported 2" in result.output
    ready_titles = [line.split("\t")[-1] for line in bt("ready").stdout.splitlines()]
    assert ready_titles == ["A"]


def test_edit_reports_unreadable_file(bt, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    task_id = _new(bt, "Alpha")
    found = Store(tmp_path).find(task_id)
    assert isinstance(found, Ok)

    def scribble(filename: str, editor: str | None = None) -> None:
        Path(filename).write_bytes(b"---\ntitle: \xff\xfe\n---\n")

    monkeypatch.setattr("typer.edit", scribble)
    result = bt("edit", task_id)
    assert result.exit_code == 1
    assert "Not valid UTF-8" in result.output
    assert isinstance(result.exception, SystemExit)

    # A file that is already unreadable is reported before the editor opens
    monkeypatch.setattr("typer.edit", lambda **_: pytest.fail("editor opened"))
    again = bt("edit", task_id)
    assert again.exit_code == 1
    assert "Not valid UTF-8" in again.output
