"""Tests for AtFileProcessor (@{path} prompt expansion).

Covers: fast paths, substitution of single and multiple placeholders,
failure handling that leaves placeholders intact, UI notifications,
diagnostic logging, concurrent resolution, and end-to-end expansion
against a real workspace on disk.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from atfile.errors import NotFoundError, OutOfBoundsError
from atfile.events import HistoryItem, MessageType, UIMessageHistory
from atfile.processors.at_file import AtFileProcessor
from atfile.processors.types import CommandContext, CommandServices
from atfile.workspace.context import WorkspaceContext

# ── Factories ──────────────────────────────────────────────────────


def _make_context(config: object | None = None) -> tuple[CommandContext, MagicMock]:
    ui = MagicMock()
    if config is None:
        config = MagicMock()
        config.get_workspace_context.return_value = MagicMock()
    return CommandContext(services=CommandServices(config=config), ui=ui), ui


def _reader_from(contents: dict[str, str]) -> AsyncMock:
    """Build a fake reader that serves ``contents`` and fails otherwise."""

    async def _read(path: str, workspace: object) -> str:
        if path in contents:
            return contents[path]
        raise NotFoundError(f"Path not found in workspace: {path}", path=path)

    return AsyncMock(side_effect=_read)


# ── Fast paths ─────────────────────────────────────────────────────


class TestFastPaths:
    @pytest.mark.asyncio()
    async def test_no_trigger_returns_prompt_unchanged(self):
        reader = _reader_from({})
        context, ui = _make_context()
        prompt = "This is a plain prompt with {braces} and an @ sign."

        result = await AtFileProcessor(reader=reader).process(prompt, context)

        assert result == prompt
        reader.assert_not_called()
        context.services.config.get_workspace_context.assert_not_called()
        ui.add_item.assert_not_called()

    @pytest.mark.asyncio()
    async def test_missing_config_returns_prompt_unchanged(self):
        reader = _reader_from({"file.txt": "content"})
        ui = MagicMock()
        context = CommandContext(services=CommandServices(config=None), ui=ui)
        prompt = "Analyze @{file.txt}"

        result = await AtFileProcessor(reader=reader).process(prompt, context)

        assert result == prompt
        reader.assert_not_called()
        ui.add_item.assert_not_called()

    @pytest.mark.asyncio()
    async def test_unclosed_trigger_returns_prompt_unchanged(self):
        reader = _reader_from({"world": "content"})
        context, ui = _make_context()

        result = await AtFileProcessor(reader=reader).process("Hello @{world", context)

        assert result == "Hello @{world"
        reader.assert_not_called()
        ui.add_item.assert_not_called()


# ── Substitution ───────────────────────────────────────────────────


class TestSubstitution:
    @pytest.mark.asyncio()
    async def test_single_placeholder(self):
        reader = _reader_from({"path/to/file.txt": "file content"})
        context, _ = _make_context()

        result = await AtFileProcessor(reader=reader).process(
            "Analyze this: @{path/to/file.txt}", context,
        )

        assert result == "Analyze this: file content"
        reader.assert_awaited_once()
        assert reader.await_args.args[0] == "path/to/file.txt"

    @pytest.mark.asyncio()
    async def test_multiple_placeholders(self):
        reader = _reader_from({"a.js": "content-of-a", "b.js": "content-of-b"})
        context, ui = _make_context()

        result = await AtFileProcessor(reader=reader).process(
            "Compare @{a.js} with @{b.js}", context,
        )

        assert result == "Compare content-of-a with content-of-b"
        assert [c.args[0] for c in reader.await_args_list] == ["a.js", "b.js"]
        ui.add_item.assert_not_called()

    @pytest.mark.asyncio()
    async def test_placeholders_at_start_middle_and_end(self):
        reader = _reader_from({"start.txt": "S", "mid.txt": "M", "end.txt": "E"})
        context, _ = _make_context()

        result = await AtFileProcessor(reader=reader).process(
            "@{start.txt} and @{mid.txt} then @{end.txt}", context,
        )

        assert result == "S and M then E"

    @pytest.mark.asyncio()
    async def test_path_with_balanced_braces(self):
        reader = _reader_from({"a/{b}/c": "nested"})
        context, _ = _make_context()

        result = await AtFileProcessor(reader=reader).process("x @{a/{b}/c} y", context)

        assert result == "x nested y"

    @pytest.mark.asyncio()
    async def test_same_path_twice_resolved_each_time(self):
        reader = _reader_from({"f": "F"})
        context, _ = _make_context()

        result = await AtFileProcessor(reader=reader).process("@{f}@{f}", context)

        assert result == "FF"
        assert reader.await_count == 2

    @pytest.mark.asyncio()
    async def test_reader_receives_workspace_from_config(self):
        workspace = MagicMock()
        config = MagicMock()
        config.get_workspace_context.return_value = workspace
        reader = _reader_from({"f": "F"})
        context, _ = _make_context(config)

        await AtFileProcessor(reader=reader).process("@{f}", context)

        assert reader.await_args.args[1] is workspace

    @pytest.mark.asyncio()
    async def test_workspace_built_once_per_prompt(self):
        config = MagicMock()
        config.get_workspace_context.return_value = MagicMock()
        reader = _reader_from({"a": "A", "b": "B", "c": "C"})
        context, _ = _make_context(config)

        result = await AtFileProcessor(reader=reader).process("@{a}@{b}@{c}", context)

        assert result == "ABC"
        config.get_workspace_context.assert_called_once()


# ── Failure handling ───────────────────────────────────────────────


class TestFailureHandling:
    @pytest.mark.asyncio()
    async def test_failed_read_leaves_placeholder(self):
        reader = _reader_from({})
        context, _ = _make_context()
        prompt = "Analyze @{  missing.txt  } now"

        result = await AtFileProcessor(reader=reader).process(prompt, context)

        assert result == prompt

    @pytest.mark.asyncio()
    async def test_mixed_success_and_failure(self):
        reader = _reader_from({"ok.txt": "<ok content>"})
        context, ui = _make_context()

        result = await AtFileProcessor(reader=reader).process(
            "Analyze @{missing.txt} and @{ok.txt}", context,
        )

        assert result == "Analyze @{missing.txt} and <ok content>"
        assert ui.add_item.call_count == 1
        item, timestamp = ui.add_item.call_args.args
        assert "missing.txt" in item.text
        assert isinstance(timestamp, int)

    @pytest.mark.asyncio()
    async def test_notification_format(self):
        reader = _reader_from({})
        context, ui = _make_context()

        await AtFileProcessor(reader=reader).process("@{missing.txt}", context)

        item = ui.add_item.call_args.args[0]
        assert item == HistoryItem(
            type=MessageType.ERROR,
            text=(
                "Failed to inject file content for '@{missing.txt}': "
                "Path not found in workspace: missing.txt"
            ),
        )

    @pytest.mark.asyncio()
    async def test_out_of_bounds_notification_contains_path(self):
        async def _read(path: str, workspace: object) -> str:
            raise OutOfBoundsError(
                f"Absolute path is outside of the allowed workspace: {path}", path=path,
            )

        context, ui = _make_context()
        prompt = "See @{/etc/passwd}"

        result = await AtFileProcessor(reader=_read).process(prompt, context)

        assert result == prompt
        assert "/etc/passwd" in ui.add_item.call_args.args[0].text

    @pytest.mark.asyncio()
    async def test_unexpected_exception_is_absorbed(self):
        reader = AsyncMock(side_effect=RuntimeError("disk on fire"))
        context, ui = _make_context()

        result = await AtFileProcessor(reader=reader).process("@{x}", context)

        assert result == "@{x}"
        assert "disk on fire" in ui.add_item.call_args.args[0].text

    @pytest.mark.asyncio()
    async def test_workspace_lookup_failure_is_absorbed(self):
        config = MagicMock()
        config.get_workspace_context.side_effect = ValueError("no workspace")
        context, ui = _make_context(config)

        result = await AtFileProcessor(reader=_reader_from({})).process("@{x}", context)

        assert result == "@{x}"
        assert ui.add_item.call_count == 1

    @pytest.mark.asyncio()
    async def test_workspace_lookup_failure_reported_per_placeholder(self):
        config = MagicMock()
        config.get_workspace_context.side_effect = ValueError("no workspace")
        reader = _reader_from({"x": "X"})
        context, ui = _make_context(config)

        result = await AtFileProcessor(reader=reader).process("@{x} and @{y}", context)

        assert result == "@{x} and @{y}"
        assert ui.add_item.call_count == 2
        assert all("no workspace" in c.args[0].text for c in ui.add_item.call_args_list)
        config.get_workspace_context.assert_called_once()
        reader.assert_not_awaited()

    @pytest.mark.asyncio()
    async def test_one_notification_per_failure(self):
        reader = _reader_from({"b": "B"})
        context, ui = _make_context()

        result = await AtFileProcessor(reader=reader).process("@{a} @{b} @{c}", context)

        assert result == "@{a} B @{c}"
        texts = [c.args[0].text for c in ui.add_item.call_args_list]
        assert len(texts) == 2
        assert "'@{a}'" in texts[0]
        assert "'@{c}'" in texts[1]

    @pytest.mark.asyncio()
    async def test_success_emits_no_notification(self):
        reader = _reader_from({"ok.txt": "fine"})
        context, ui = _make_context()

        await AtFileProcessor(reader=reader).process("@{ok.txt}", context)

        ui.add_item.assert_not_called()

    @pytest.mark.asyncio()
    async def test_failure_is_logged(self, caplog):
        reader = _reader_from({})
        context, _ = _make_context()

        with caplog.at_level(logging.ERROR, logger="atfile.processors.at_file"):
            await AtFileProcessor(reader=reader).process("@{missing.txt}", context)

        assert any(
            "[AtFileProcessor]" in r.getMessage() and "missing.txt" in r.getMessage()
            for r in caplog.records
        )


# ── Concurrency ────────────────────────────────────────────────────


class TestConcurrentResolution:
    @pytest.mark.asyncio()
    async def test_results_spliced_in_text_order(self):
        delays = {"slow": 0.05, "medium": 0.02, "fast": 0.0}

        async def _read(path: str, workspace: object) -> str:
            await asyncio.sleep(delays[path])
            return path.upper()

        context, _ = _make_context()
        prompt = "1:@{slow} 2:@{medium} 3:@{fast}"

        result = await AtFileProcessor(concurrent=True, reader=_read).process(prompt, context)

        assert result == "1:SLOW 2:MEDIUM 3:FAST"

    @pytest.mark.asyncio()
    async def test_matches_sequential_output(self):
        contents = {"a": "A", "c": "C"}
        prompt = "@{a} @{b} @{c} @{d}"

        seq_ctx, seq_ui = _make_context()
        con_ctx, con_ui = _make_context()
        sequential = await AtFileProcessor(reader=_reader_from(contents)).process(prompt, seq_ctx)
        concurrent = await AtFileProcessor(
            concurrent=True, reader=_reader_from(contents),
        ).process(prompt, con_ctx)

        assert concurrent == sequential == "A @{b} C @{d}"
        assert [c.args[0].text for c in con_ui.add_item.call_args_list] == [
            c.args[0].text for c in seq_ui.add_item.call_args_list
        ]


# ── End to end ─────────────────────────────────────────────────────


class _Config:
    def __init__(self, workspace: WorkspaceContext) -> None:
        self._workspace = workspace

    def get_workspace_context(self) -> WorkspaceContext:
        return self._workspace


class TestEndToEnd:
    @pytest.mark.asyncio()
    async def test_expands_against_real_workspace(self, tmp_path: Path):
        primary = tmp_path / "project"
        shared = tmp_path / "shared"
        primary.mkdir()
        shared.mkdir()
        (primary / "a.js").write_text("content-of-a", encoding="utf-8")
        (shared / "b.js").write_text("content-of-b", encoding="utf-8")
        (primary / "lib").mkdir()
        (primary / "lib" / "util.js").write_text("", encoding="utf-8")

        history = UIMessageHistory()
        context = CommandContext(
            services=CommandServices(config=_Config(WorkspaceContext(primary, [shared]))),
            ui=history,
        )

        result = await AtFileProcessor().process(
            "Compare @{a.js} with @{b.js}. Layout: @{lib}. Missing: @{nope.js}",
            context,
        )

        assert result == (
            "Compare content-of-a with content-of-b. "
            "Layout: Directory listing for lib:\n- util.js. "
            "Missing: @{nope.js}"
        )
        assert len(history.errors) == 1
        assert "nope.js" in history.errors[0].text

    @pytest.mark.asyncio()
    async def test_absolute_path_outside_workspace(self, tmp_path: Path):
        primary = tmp_path / "project"
        primary.mkdir()
        outside = tmp_path / "secret.txt"
        outside.write_text("secret", encoding="utf-8")

        history = UIMessageHistory()
        context = CommandContext(
            services=CommandServices(config=_Config(WorkspaceContext(primary))),
            ui=history,
        )
        prompt = f"Leak @{{{outside}}}"

        result = await AtFileProcessor().process(prompt, context)

        assert result == prompt
        assert len(history.errors) == 1
        assert str(outside) in history.errors[0].text
        assert "outside of the allowed workspace" in history.errors[0].text
