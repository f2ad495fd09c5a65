"""
Text cleanup for speech synthesis.
"""

import re

_DECORATIVE = re.compile("[😊😄🤍💪❤️🌟✨💫]")
_EMPHASIS = re.compile(r"\*+")
_WHITESPACE = re.compile(r"\s+")


def normalize_for_speech(text: str) -> str:
    """Strip emoji and markdown emphasis, collapse whitespace and newlines."""
    text = _DECORATIVE.sub("", text)
    text = _EMPHASIS.sub("", text)
    text = _WHITESPACE.sub(" ", text)
    return text.strip()
