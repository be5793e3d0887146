"""Input cleanup applied to user questions before they enter an LLM prompt."""
import re

MAX_QUESTION_LENGTH = 500

# Instruction-override phrases and chat role markers, rewritten to inert text
_OVERRIDE_PATTERNS = [
    (re.compile(r"\bignore\s+(?:all\s+)?(?:the\s+)?previous\b", re.IGNORECASE), "disregard prior"),
    (re.compile(r"\bforget\s+everything\b", re.IGNORECASE), "disregard prior context"),
    (re.compile(r"\bnew\s+instructions\s*:", re.IGNORECASE), "additional context:"),
    (re.compile(r"\bsystem\s*:", re.IGNORECASE), "note:"),
    (re.compile(r"\bassistant\s*:", re.IGNORECASE), "response:"),
]

# Statement fragments; whole-word so "drop in value" or "deleted accounts" survive
_STATEMENT_PATTERNS = [
    (re.compile(r"\bdrop\s+(?:table|schema|database)\b", re.IGNORECASE), "reference table"),
    (re.compile(r"\bdelete\s+from\b", re.IGNORECASE), "query from"),
    (re.compile(r"\btruncate\s+table\b", re.IGNORECASE), "reference table"),
]

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def sanitize_prompt_input(text: str, max_length: int = MAX_QUESTION_LENGTH) -> str:
    """Return ``text`` safe to embed in a prompt.

    Truncates to ``max_length``, drops control characters and neutralizes
    phrases that try to override the system prompt or smuggle statements.
    """
    if not text:
        return ""

    text = _CONTROL_CHARS.sub("", str(text)[:max_length])

    for pattern, replacement in _OVERRIDE_PATTERNS + _STATEMENT_PATTERNS:
        text = pattern.sub(replacement, text)

    return text.strip()
