"""Word bank: category -> candidate words, with uniform random selection."""

from __future__ import annotations

import csv
import random
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from game.logic.exceptions import EmptyBankError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

logger = structlog.get_logger()

CATEGORY_COLUMN = "Category"
WORD_COLUMN = "Word"


class WordBank:
    """Hold category -> word-list mappings.

    Selection is uniformly random per call with no memory of previous picks,
    so a word may repeat across rounds.
    """

    def __init__(self, words_by_category: Mapping[str, Iterable[str]], rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()  # noqa: S311
        self._words: dict[str, tuple[str, ...]] = {}
        for category, words in words_by_category.items():
            name = category.strip()
            cleaned = tuple(w.strip() for w in words if w and w.strip())
            if name and cleaned:
                self._words[name] = self._words.get(name, ()) + cleaned

    @classmethod
    def from_csv(cls, path: Path | str, rng: random.Random | None = None) -> WordBank:
        """Load a ``Category,Word`` CSV file.

        A missing or unreadable file yields an empty bank; the server keeps
        running and round starts fail with EmptyBankError.
        """
        words: dict[str, list[str]] = {}
        try:
            with Path(path).open(newline="", encoding="utf-8") as f:
                for row in csv.DictReader(f):
                    category = (row.get(CATEGORY_COLUMN) or "").strip()
                    word = (row.get(WORD_COLUMN) or "").strip()
                    if category and word:
                        words.setdefault(category, []).append(word)
        except (OSError, UnicodeDecodeError, csv.Error):
            logger.exception("failed to load word bank", path=str(path))
            return cls({}, rng=rng)

        bank = cls(words, rng=rng)
        logger.info("word bank loaded", path=str(path), categories=sorted(bank.categories()))
        return bank

    @property
    def is_empty(self) -> bool:
        return not self._words

    def categories(self) -> set[str]:
        return set(self._words)

    def words(self, category: str) -> tuple[str, ...]:
        return self._words.get(category, ())

    def random_category(self) -> str:
        if not self._words:
            raise EmptyBankError("No word categories loaded")
        return self._rng.choice(sorted(self._words))

    def random_word(self, category: str) -> str:
        words = self._words.get(category)
        if not words:
            raise EmptyBankError(f"No words available in category {category!r}")
        return self._rng.choice(words)
