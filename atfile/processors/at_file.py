"""Processor that replaces @{path} placeholders with workspace content.

Each placeholder is resolved independently. A placeholder whose path
cannot be read stays in the prompt verbatim, and the user is told why
through the UI sink. Expansion itself never fails.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from atfile.events import HistoryItem, MessageType
from atfile.processors.scanner import extract_injections
from atfile.processors.types import (
    AT_FILE_INJECTION_TRIGGER,
    CommandContext,
    PromptProcessor,
)
from atfile.schemas.injection import InjectionSpan, ResolutionOutcome
from atfile.workspace.context import WorkspaceProvider
from atfile.workspace.reader import read_path_from_workspace

logger = logging.getLogger(__name__)

PathReader = Callable[[str, WorkspaceProvider], Awaitable[str]]


class AtFileProcessor(PromptProcessor):
    """Expands ``@{path}`` sites using files and directories in the workspace.

    Args:
        concurrent: Resolve all placeholders at once with ``asyncio.gather``.
            Output and notification order stay left to right either way.
        reader: Coroutine used to turn a path into content. Defaults to
            ``read_path_from_workspace``.
    """

    def __init__(
        self,
        concurrent: bool = False,
        reader: PathReader | None = None,
    ) -> None:
        self._concurrent = concurrent
        self._reader = reader or read_path_from_workspace

    async def process(self, prompt: str, context: CommandContext) -> str:
        if AT_FILE_INJECTION_TRIGGER not in prompt:
            return prompt

        config = context.services.config
        if config is None:
            # Without a workspace there is nothing to resolve against.
            return prompt

        injections = extract_injections(prompt)
        if not injections:
            return prompt

        try:
            workspace = config.get_workspace_context()
        except Exception as e:
            outcomes = [ResolutionOutcome.failure(span, str(e)) for span in injections]
        else:
            outcomes = await self._resolve_all(injections, workspace)

        parts: list[str] = []
        last_index = 0
        for outcome in outcomes:
            span = outcome.span
            parts.append(prompt[last_index:span.start_index])
            if outcome.ok:
                parts.append(outcome.content)
            else:
                self._report_failure(span, outcome.error or "", context)
                parts.append(span.placeholder(prompt))
            last_index = span.end_index

        parts.append(prompt[last_index:])
        return "".join(parts)

    async def _resolve_all(
        self,
        injections: list[InjectionSpan],
        workspace: WorkspaceProvider,
    ) -> list[ResolutionOutcome]:
        if self._concurrent:
            # gather preserves argument order regardless of completion order
            return list(
                await asyncio.gather(
                    *(self._resolve(span, workspace) for span in injections)
                )
            )
        return [await self._resolve(span, workspace) for span in injections]

    async def _resolve(
        self,
        span: InjectionSpan,
        workspace: WorkspaceProvider,
    ) -> ResolutionOutcome:
        try:
            content = await self._reader(span.path, workspace)
        except Exception as e:
            return ResolutionOutcome.failure(span, str(e))
        return ResolutionOutcome.success(span, content)

    def _report_failure(
        self,
        span: InjectionSpan,
        message: str,
        context: CommandContext,
    ) -> None:
        ui_message = f"Failed to inject file content for '@{{{span.path}}}': {message}"
        logger.error("[AtFileProcessor] %s. Leaving placeholder in prompt.", ui_message)
        context.ui.add_item(
            HistoryItem(type=MessageType.ERROR, text=ui_message),
            int(time.time() * 1000),
        )
