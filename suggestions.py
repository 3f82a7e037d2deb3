from typing import Optional

# Phrases that mark a "suggestion" as prose advice instead of replacement code.
ADVISORY_PHRASES = (
    "consider", "should", "could", "would", "might",
    "ensure", "verify", "check", "pin to", "e.g.,",
    "for example", "you can", "it is", "this is",
)


def _key(text: str) -> str:
    return text.split(":", 1)[0].strip()


def is_admissible(suggestion: Optional[str], original_content: Optional[str]) -> bool:
    """
    Decide whether a suggestion can be offered as a one-line replacement of
    original_content. Rules are checked in order and the first failure rejects.
    """
    if not suggestion or not suggestion.strip():
        return False

    # GitHub suggestion blocks here replace exactly one line
    if "\n" in suggestion or "\r" in suggestion:
        return False

    if original_content is None:
        return False

    trimmed_suggestion = suggestion.strip()
    trimmed_original = original_content.strip()

    if trimmed_suggestion == trimmed_original:
        return False

    lowered = trimmed_suggestion.lower()
    if any(phrase in lowered for phrase in ADVISORY_PHRASES):
        return False

    # key: value lines (YAML and friends) must keep the same key
    if ":" in trimmed_original and ":" in trimmed_suggestion:
        if _key(trimmed_original) != _key(trimmed_suggestion):
            return False

    return True
