"""Unit tests for utility functions (microfed.utils).

Tests cover:
- run_command (success, failure, cwd, timeout, env, capture=False)
- load_json / load_json_list / write_json / save_json
- format_duration
- Rich output helpers
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from microfed.utils import (
    format_duration,
    load_json,
    load_json_list,
    print_error,
    print_info,
    print_success,
    print_summary_table,
    print_warning,
    run_command,
    save_json,
    write_json,
)

PYTHON = sys.executable


# ---------------------------------------------------------------------------
# run_command
# ---------------------------------------------------------------------------


class TestRunCommand:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_successful_command_list(self):
        returncode, stdout, stderr = await run_command([PYTHON, "-c", "print('hello')"])
        assert returncode == 0
        assert stdout == "hello"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failed_command(self):
        returncode, _, _ = await run_command([PYTHON, "-c", "import sys; sys.exit(3)"])
        assert returncode == 3

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_command_with_cwd(self, tmp_path: Path):
        returncode, stdout, _ = await run_command(
            [PYTHON, "-c", "import os; print(os.getcwd())"], cwd=tmp_path
        )
        assert returncode == 0
        assert Path(stdout).resolve() == tmp_path.resolve()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_command_timeout(self):
        returncode, _, stderr = await run_command(
            [PYTHON, "-c", "import time; time.sleep(10)"], timeout=1
        )
        assert returncode == -1
        assert "timed out" in stderr

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_command_with_env(self):
        returncode, stdout, _ = await run_command(
            [PYTHON, "-c", "import os; print(os.environ['MICROFED_TEST'])"],
            env={"MICROFED_TEST": "value"},
        )
        assert returncode == 0
        assert stdout == "value"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_uncaptured_output_is_empty(self):
        returncode, stdout, stderr = await run_command(
            [PYTHON, "-c", "print('inherited')"], capture=False
        )
        assert returncode == 0
        assert stdout == ""
        assert stderr == ""


# ---------------------------------------------------------------------------
# JSON I/O
# ---------------------------------------------------------------------------


class TestJsonIO:
    @pytest.mark.unit
    def test_load_json_object(self, tmp_path: Path):
        path = tmp_path / "data.json"
        path.write_text('{"name": "shell"}', encoding="utf-8")
        assert load_json(path) == {"name": "shell"}

    @pytest.mark.unit
    def test_load_json_rejects_array(self, tmp_path: Path):
        path = tmp_path / "data.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ValueError, match="JSON object"):
            load_json(path)

    @pytest.mark.unit
    def test_load_json_missing(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_json(tmp_path / "missing.json")

    @pytest.mark.unit
    def test_load_json_list(self, tmp_path: Path):
        path = tmp_path / "list.json"
        path.write_text('[{"a": 1}]', encoding="utf-8")
        assert load_json_list(path) == [{"a": 1}]

    @pytest.mark.unit
    def test_load_json_list_missing_file(self, tmp_path: Path):
        assert load_json_list(tmp_path / "nope.json") == []

    @pytest.mark.unit
    def test_load_json_list_rejects_object(self, tmp_path: Path):
        path = tmp_path / "obj.json"
        path.write_text('{"a": 1}', encoding="utf-8")
        with pytest.raises(ValueError, match="JSON array"):
            load_json_list(path)

    @pytest.mark.unit
    def test_load_json_list_invalid(self, tmp_path: Path):
        path = tmp_path / "bad.json"
        path.write_text("not json", encoding="utf-8")
        with pytest.raises(ValueError):
            load_json_list(path)

    @pytest.mark.unit
    def test_write_json_creates_parents(self, tmp_path: Path):
        path = tmp_path / "deep" / "nested" / "out.json"
        write_json({"key": "value"}, path)
        assert json.loads(path.read_text(encoding="utf-8")) == {"key": "value"}
        assert path.read_text(encoding="utf-8").endswith("\n")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_save_json_list(self, tmp_path: Path):
        path = tmp_path / "out.json"
        await save_json([1, 2, 3], path)
        assert json.loads(path.read_text(encoding="utf-8")) == [1, 2, 3]


# ---------------------------------------------------------------------------
# format_duration
# ---------------------------------------------------------------------------


class TestFormatDuration:
    @pytest.mark.unit
    def test_seconds_only(self):
        assert format_duration(3.7) == "3.7s"

    @pytest.mark.unit
    def test_minutes_and_seconds(self):
        assert format_duration(65.2) == "1m 5s"

    @pytest.mark.unit
    def test_negative(self):
        assert format_duration(-1) == "0.0s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


class TestRichOutput:
    @pytest.mark.unit
    def test_messages_do_not_raise_on_markup(self):
        with patch("microfed.utils.console") as mock_console:
            print_success("[done]")
            print_error("[red]not markup")
            print_warning("warn")
            print_info("info")
        assert mock_console.print.call_count == 4
        printed = mock_console.print.call_args_list[1].args[0]
        assert "\\[red]not markup" in printed

    @pytest.mark.unit
    def test_summary_table(self):
        with patch("microfed.utils.console") as mock_console:
            print_summary_table(
                [("shell", "host", "3000", "created", "/tmp/shell")],
                ("Application", "Role", "Port", "Status", "Details"),
            )
        table = mock_console.print.call_args_list[0].args[0]
        assert table.row_count == 1
        assert len(table.columns) == 5
