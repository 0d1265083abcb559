"""Prompt-injection neutralization for untrusted menu text.

Matches are replaced in place with a placeholder; surrounding text is kept
intact. Detection is reported to the caller, never treated as an error.
"""

import re
from dataclasses import dataclass

FILTERED_PLACEHOLDER = "[FILTERED]"

INJECTION_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"ignore\s+(?:all\s+)?(?:previous|above|prior|earlier)\s+instructions?",
        r"disregard\s+(?:all\s+)?(?:previous|above|prior|earlier)\s+instructions?",
        r"forget\s+(?:everything|all|your|the\s+previous)",
        r"system\s*:",
        r"assistant\s*:",
        r"\[INST\]",
        r"<<SYS>>",
        r"<\|im_start\|>",
        r"<\|im_end\|>",
        r"you\s+are\s+now\s+(?:a|an)\b",
        r"new\s+(?:role|instructions?|task)\s*:",
        r"from\s+now\s+on",
        r"pretend\s+(?:you|to\s+be)",
        r"act\s+as\s+(?:if|a|an)\b",
        r"roleplay\s+as",
        r"override\s+(?:previous|all|your)",
        r"do\s+not\s+follow\s+(?:the|your|previous)",
    )
)


@dataclass(frozen=True)
class SanitizationResult:
    sanitized: str
    suspicious: bool


def sanitize(text: str) -> SanitizationResult:
    """Replace injection-indicative phrases with a neutral placeholder.

    Args:
        text: Untrusted menu text

    Returns:
        SanitizationResult with the rewritten text and whether anything matched
    """
    sanitized = text
    suspicious = False

    for pattern in INJECTION_PATTERNS:
        sanitized, count = pattern.subn(FILTERED_PLACEHOLDER, sanitized)
        if count:
            suspicious = True

    return SanitizationResult(sanitized=sanitized, suspicious=suspicious)
