"""Prompt-injection detector table.

Data-driven: category -> ordered list of compiled patterns. New signatures
are added here; the sanitizer iterates categories in insertion order.
"""

import re

INJECTION_PATTERNS: dict[str, list[re.Pattern[str]]] = {
    "instruction_override": [
        re.compile(r"ignore\s+(all\s+)?(previous|prior|above|system)\s+(instructions|prompts|rules)", re.IGNORECASE),
        re.compile(r"disregard\s+(all\s+)?(previous|prior|above|system)", re.IGNORECASE),
        re.compile(r"forget\s+(all\s+)?(previous|prior|above|system)", re.IGNORECASE),
        re.compile(r"override\s+(system|previous|prior)", re.IGNORECASE),
    ],
    "delimiter_injection": [
        re.compile(r"\[\s*system\s*\]\s*:", re.IGNORECASE),
        re.compile(r"<\s*system\s*>", re.IGNORECASE),
        re.compile(r"\[end\s+(of\s+)?system\s+prompt\]", re.IGNORECASE),
        re.compile(r"---\s*end\s+system", re.IGNORECASE),
        re.compile(r"new\s+system\s+prompt", re.IGNORECASE),
        re.compile(r"\[INST\]", re.IGNORECASE),
        re.compile(r"<<\s*SYS\s*>>", re.IGNORECASE),
    ],
    "persona_switch": [
        re.compile(r"you\s+are\s+now\s+(a|an|the)\s+", re.IGNORECASE),
        re.compile(r"pretend\s+(to\s+be|you\s+are)", re.IGNORECASE),
        re.compile(r"act\s+as\s+(if|a|an|the)\s+", re.IGNORECASE),
        re.compile(r"roleplay\s+as", re.IGNORECASE),
        re.compile(r"switch\s+to\s+.*\s+mode", re.IGNORECASE),
        re.compile(r"enter\s+.*\s+mode", re.IGNORECASE),
        re.compile(r"jailbreak", re.IGNORECASE),
        re.compile(r"DAN\s+mode", re.IGNORECASE),
    ],
    "prompt_extraction": [
        re.compile(r"repeat\s+(your|the)\s+(system|initial|original|full)\s+(prompt|instructions|message)", re.IGNORECASE),
        re.compile(r"what\s+(are|is|were)\s+your\s+(system|initial|original|hidden)\s+(prompt|instructions)", re.IGNORECASE),
        re.compile(r"show\s+(me\s+)?your\s+(system|initial|original)\s+(prompt|instructions)", re.IGNORECASE),
        re.compile(r"reveal\s+your\s+(system|initial)\s+(prompt|instructions|rules)", re.IGNORECASE),
        re.compile(r"output\s+(the\s+)?(above|system|initial)\s+(text|prompt|instructions)", re.IGNORECASE),
        re.compile(r"print\s+your\s+(system|initial)\s+(prompt|instructions)", re.IGNORECASE),
        re.compile(r"dump\s+(your\s+)?(system|prompt|instructions)", re.IGNORECASE),
    ],
    "code_execution": [
        re.compile(r"\beval\s*\(", re.IGNORECASE),
        re.compile(r"\bexec\s*\(", re.IGNORECASE),
        re.compile(r"os\.(system|exec|popen|remove)", re.IGNORECASE),
        re.compile(r"subprocess\.(run|call|Popen)", re.IGNORECASE),
        re.compile(r"require\s*\(\s*['\"]child_process", re.IGNORECASE),
        re.compile(r"__import__", re.IGNORECASE),
    ],
    "dom_exfiltration": [
        re.compile(r"fetch\s*\(\s*['\"]https?://", re.IGNORECASE),
        re.compile(r"XMLHttpRequest", re.IGNORECASE),
        re.compile(r"window\.location", re.IGNORECASE),
        re.compile(r"document\.cookie", re.IGNORECASE),
        re.compile(r"\.innerHTML\s*=", re.IGNORECASE),
        re.compile(r"<script[\s>]", re.IGNORECASE),
        re.compile(r"javascript:", re.IGNORECASE),
    ],
}


def detect_injection(text: str) -> str | None:
    """Return the first matching detector category, or None.

    The category is for internal logging and metrics only; it must never be
    echoed back to the caller.
    """
    for category, patterns in INJECTION_PATTERNS.items():
        for pattern in patterns:
            if pattern.search(text):
                return category
    return None
