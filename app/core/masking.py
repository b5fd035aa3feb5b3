from __future__ import annotations

import re
from dataclasses import dataclass, field
from re import Pattern

MASK_TOKEN = "[MASKED]"


@dataclass(frozen=True)
class ErrorMasker:
    """Scrubs runtime internals out of error text before it leaves the process."""

    patterns: tuple[Pattern[str], ...] = field(default_factory=tuple)

    @classmethod
    def from_patterns(cls, patterns: list[str]) -> ErrorMasker:
        compiled: list[Pattern[str]] = []
        for idx, pattern in enumerate(patterns):
            try:
                compiled.append(re.compile(pattern))
            except re.error as exc:
                raise ValueError(f"invalid masking regex at index {idx}: {pattern}") from exc
        return cls(patterns=tuple(compiled))

    def mask(self, message: str) -> str:
        if not message:
            return message
        masked = message
        for pattern in self.patterns:
            masked = pattern.sub(MASK_TOKEN, masked)
        return masked


def build_masker(patterns: list[str]) -> ErrorMasker:
    return ErrorMasker.from_patterns(patterns)
