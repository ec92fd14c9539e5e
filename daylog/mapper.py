"""
Category Mapper - Deterministic keyword and time-of-day categorisation.

Used whenever the remote classifier is unavailable or fails.
"""

import logging
from typing import Optional

from daylog import constants
from daylog.config import Settings
from daylog.models import Category, Entry
from daylog.utils import start_hour

logger = logging.getLogger(__name__)


class CategoryMapper:
    """Maps entries to categories using keyword sets and the sleep window."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self.keywords = self._load_keywords()
        self.sleep_start_hour = constants.SLEEP_START_HOUR
        self.sleep_end_hour = self.settings.sleep_end_hour

    def _load_keywords(self) -> list[tuple[Category, list[str]]]:
        """Built-in keyword sets merged with extras from config, in match order."""
        keywords = {
            Category(label): [word.lower() for word in words]
            for label, words in constants.CATEGORY_KEYWORDS.items()
        }

        for key, words in self.settings.extra_keywords.items():
            try:
                category = Category.parse(key)
            except ValueError:
                logger.warning(f"Ignoring keywords for unknown category: {key}")
                continue

            if isinstance(words, str):
                words = [words]
            elif not isinstance(words, list):
                logger.warning(f"Ignoring keywords for {key}: expected a list, got {type(words).__name__}")
                continue

            extras = [str(word).lower() for word in words if str(word).strip()]
            keywords.setdefault(category, []).extend(extras)

        return list(keywords.items())

    def _find_keyword_match(self, content: str) -> Optional[Category]:
        """Return the first category whose keyword appears in the content."""
        text = content.lower()
        for category, words in self.keywords:
            if any(word in text for word in words):
                return category
        return None

    def _is_sleep_hour(self, start: str) -> bool:
        try:
            hour = start_hour(start)
        except ValueError:
            return False
        return self.sleep_start_hour <= hour < self.sleep_end_hour

    def map_entry(self, entry: Entry) -> Category:
        """
        Pick a category for a single entry.

        Priority: resting, work, development and family keywords, then the
        early-morning sleep window, then routine.
        """
        # Priority 1: Keyword sets
        match = self._find_keyword_match(entry.content)
        if match:
            return match

        # Priority 2: Sleep window
        if self._is_sleep_hour(entry.start):
            return Category.RESTING

        # No match found
        return Category.ROUTINE

    def categorize(self, entries: list[Entry]) -> None:
        """Assign a category to every entry in place. Never fails."""
        for entry in entries:
            entry.category = self.map_entry(entry)
        logger.info(f"Keyword-categorised {len(entries)} entries")
