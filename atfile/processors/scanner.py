"""Locate @{...} injection sites in prompt text.

Braces inside the path are allowed as long as they balance, so the
closing brace is found with a depth counter rather than a regex. A
trigger that is never closed is skipped one character at a time, which
lets a later trigger inside the abandoned text still be found.
"""

from __future__ import annotations

from atfile.processors.types import AT_FILE_INJECTION_TRIGGER
from atfile.schemas.injection import InjectionSpan


def extract_injections(
    text: str,
    trigger: str = AT_FILE_INJECTION_TRIGGER,
) -> list[InjectionSpan]:
    """Return the injection spans in ``text``, left to right.

    Args:
        text: The prompt to scan.
        trigger: Opening sequence; must end with ``{``.

    Returns:
        Non-overlapping spans. Each span's path is the text between the
        trigger and its matching ``}``, stripped of surrounding whitespace.
    """
    injections: list[InjectionSpan] = []
    index = 0

    while index < len(text):
        start_index = text.find(trigger, index)
        if start_index == -1:
            break

        current_index = start_index + len(trigger)
        brace_count = 1
        found_end = False

        while current_index < len(text):
            char = text[current_index]
            if char == "{":
                brace_count += 1
            elif char == "}":
                brace_count -= 1
                if brace_count == 0:
                    end_index = current_index + 1
                    injections.append(
                        InjectionSpan(
                            path=text[start_index + len(trigger):current_index].strip(),
                            start_index=start_index,
                            end_index=end_index,
                        )
                    )
                    index = end_index
                    found_end = True
                    break
            current_index += 1

        if not found_end:
            index = start_index + 1

    return injections
