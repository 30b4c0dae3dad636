"""Injection site and resolution outcome schemas.

Defines the span extracted for each @{...} placeholder and the outcome of
resolving its path against the workspace.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class InjectionSpan(BaseModel):
    """A single @{...} site located in prompt text."""

    path: str = Field(description="Inner path text with surrounding whitespace stripped")
    start_index: int = Field(ge=0, description="Index of the trigger's '@' (inclusive)")
    end_index: int = Field(ge=1, description="Index just past the closing '}' (exclusive)")

    def placeholder(self, text: str) -> str:
        """Return the verbatim placeholder this span covers in ``text``."""
        return text[self.start_index:self.end_index]


class ResolutionOutcome(BaseModel):
    """Result of resolving one injection: content or an error message."""

    span: InjectionSpan = Field(description="The injection that was resolved")
    ok: bool = Field(description="Whether the path resolved to content")
    content: str = Field(default="", description="File text or directory listing")
    error: str | None = Field(default=None, description="Failure message when ok is False")

    @classmethod
    def success(cls, span: InjectionSpan, content: str) -> ResolutionOutcome:
        return cls(span=span, ok=True, content=content)

    @classmethod
    def failure(cls, span: InjectionSpan, error: str) -> ResolutionOutcome:
        return cls(span=span, ok=False, error=error)
