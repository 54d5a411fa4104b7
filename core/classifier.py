"""
core/classifier.py - Greeting Detection
========================================

Decides whether an incoming message is a greeting (answered with a canned
welcome) or a substantive question (sent through the lookup tiers).

Matching is plain substring containment on the normalized text, so a
greeting phrase anywhere in the message counts: "hello there" and
"hey, what is dengue?" are both greetings. Short phrases like "hi" also
match inside longer words ("chills", "this"); that is the long-standing
behavior of the service and is kept as-is.
"""

from enum import Enum
from typing import Iterable, Optional

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))
from config import GREETING_PHRASES


class QueryKind(str, Enum):
    """Classification of an incoming message."""
    GREETING = "greeting"
    SUBSTANTIVE = "substantive"


def normalize_query(text: str) -> str:
    """Trim surrounding whitespace and lower-case. Used as the lookup key."""
    return text.strip().lower()


def find_greeting(text: str, phrases: Optional[Iterable[str]] = None) -> Optional[str]:
    """
    Return the first greeting phrase contained in the text, or None.

    Args:
        text: Raw or normalized user message
        phrases: Greeting phrases to look for (defaults to config.GREETING_PHRASES)

    Example:
        >>> find_greeting("Hello there")
        'hello'
        >>> find_greeting("What is malaria?") is None
        True
    """
    normalized = normalize_query(text)

    for phrase in phrases if phrases is not None else GREETING_PHRASES:
        if phrase.lower() in normalized:
            return phrase

    return None


def classify(text: str) -> QueryKind:
    """Classify a message as a greeting or a substantive question."""
    if find_greeting(text) is not None:
        return QueryKind.GREETING
    return QueryKind.SUBSTANTIVE
