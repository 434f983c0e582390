"""Fixture: pre-3.9 typing and missing annotations."""

from typing import Dict, List, Optional


def index(words: List[str]) -> Dict[str, int]:
    return {word: i for i, word in enumerate(words)}


def first(words: List[str]) -> Optional[str]:
    return words[0] if words else None


def shout(text):
    return text.upper()
