"""Script-aware word segmentation for the search index.

Runs of hiragana, katakana, other word characters, and punctuation are
separate tokens. Kanji runs are further split into dictionary words with
jieba's search mode, which also yields the shorter words inside a long
compound. Whitespace separates tokens and is dropped.

Examples
--------
>>> segment("Hello, カタログ!")
['Hello', ',', 'カタログ', '!']
"""

from __future__ import annotations

import logging
import re

import jieba

KANJI = "々〆〇㐀-䶿一-鿿豈-﫿"
HIRAGANA = "ぁ-ゟ"
KATAKANA = "ァ-ヿｦ-ﾟ"

TOKEN_PATTERN = re.compile(
    rf"[{KANJI}]+"
    rf"|[{HIRAGANA}]+"
    rf"|[{KATAKANA}]+"
    rf"|[^\W{KANJI}{HIRAGANA}{KATAKANA}]+"
    r"|[^\w\s]+"
)
KANJI_RUN_PATTERN = re.compile(rf"[{KANJI}]+")
WHITESPACE_PATTERN = re.compile(r"\s+")

# jieba announces dictionary loading at DEBUG on its own logger.
jieba.setLogLevel(logging.WARNING)


def squash(text: str) -> str:
    """Collapse every whitespace run, newlines included, to one space."""
    return WHITESPACE_PATTERN.sub(" ", text)


def segment_kanji(run: str) -> list[str]:
    """Split a kanji ``run`` into search words with ``jieba.cut_for_search``."""
    return [word for word in jieba.cut_for_search(run) if word.strip()]


def segment(text: str) -> list[str]:
    """Split ``text`` into script-homogeneous tokens."""
    tokens: list[str] = []
    for token in TOKEN_PATTERN.findall(text):
        if KANJI_RUN_PATTERN.fullmatch(token):
            tokens.extend(segment_kanji(token))
        else:
            tokens.append(token)
    return tokens


__all__ = [
    "HIRAGANA",
    "KANJI",
    "KATAKANA",
    "TOKEN_PATTERN",
    "segment",
    "segment_kanji",
    "squash",
]
