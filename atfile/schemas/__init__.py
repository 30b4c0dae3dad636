"""atfile schema definitions.

Pydantic v2 models shared by the scanner, resolver, and processor.
"""

from atfile.schemas.injection import InjectionSpan, ResolutionOutcome

__all__ = [
    "InjectionSpan",
    "ResolutionOutcome",
]
