from __future__ import annotations
import unicodedata
from typing import List

def _fold(ch: str) -> str:
    """Strip accents: 'é' -> 'e', 'ô' -> 'o'. Combining marks are dropped."""
    decomposed = unicodedata.normalize("NFKD", ch)
    return "".join(c for c in decomposed if not unicodedata.combining(c))

def _is_word_char(ch: str) -> bool:
    """Letters and digits are kept. Everything else separates words."""
    return ch.isalnum()

def normalize(text: str) -> str:
    """
    Normalize text for matching:
      * case-insensitive via .casefold(), accents folded
      * punctuation/symbols act as word separators ("riad-jnane" -> "riad jnane")
      * collapse multiple spaces and trim
    """
    out_chars: list[str] = []
    last_was_space = False

    for ch in text:
        if not _is_word_char(ch):
            last_was_space = True
            continue
        # flush one collapsed space before a word char (not at start)
        if last_was_space and out_chars:
            out_chars.append(" ")
        last_was_space = False
        out_chars.append(_fold(ch).casefold())

    return "".join(out_chars)

def tokens(text: str) -> List[str]:
    """Normalized words of text."""
    norm = normalize(text)
    return norm.split(" ") if norm else []
