"""
Analysis Session - Owns the entries of one analysis and keeps stats in sync.

Flow: reset -> parse -> validate -> gap-fill -> categorise -> stats, with
advice generated in the background.
"""

import concurrent.futures
import logging
from typing import Optional

from daylog import constants
from daylog.analyzer import get_summary_stats, group_entries_by_category
from daylog.categorizer import (
    MODE_KEYWORD,
    ClassificationResult,
    categorize_entries,
    generate_advice,
)
from daylog.config import Settings
from daylog.llm import LLMClient
from daylog.mapper import CategoryMapper
from daylog.models import (
    AdviceGenerationFailure,
    AdviceState,
    Category,
    Entry,
    SummaryStats,
)
from daylog.parser import (
    add_sleep_period_if_missing,
    get_user_entries,
    parse_log_text,
    validate_entries,
)

logger = logging.getLogger(__name__)


class AnalysisSession:
    """Single-writer state for analysing one day's log."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[LLMClient] = None,
        mapper: Optional[CategoryMapper] = None,
    ):
        self.settings = settings or Settings()
        self.client = client
        self.mapper = mapper or CategoryMapper(self.settings)
        self.advice = AdviceState()
        self._executor: Optional[concurrent.futures.ThreadPoolExecutor] = None
        self.entries: list[Entry] = []
        self.thoughts: list[str] = []
        self.actions: list[str] = []
        self.classification: Optional[ClassificationResult] = None
        self.stats: Optional[SummaryStats] = None

    def reset(self) -> None:
        """Drop all state from the previous analysis."""
        self.entries = []
        self.thoughts = []
        self.actions = []
        self.classification = None
        self.stats = None
        self.advice.reset()

    def analyze(self, raw_text: str, with_advice: bool = True) -> SummaryStats:
        """
        Run the full pipeline on a log.

        Args:
            raw_text: Log text
            with_advice: Request coaching advice in the background when a
                client is configured

        Returns:
            Statistics snapshot

        Raises:
            NoValidEntries: if the log has no time entries
        """
        self.reset()

        parsed = parse_log_text(raw_text)
        validate_entries(parsed.entries)
        add_sleep_period_if_missing(parsed.entries)

        self.entries = parsed.entries
        self.thoughts = parsed.thoughts
        self.actions = parsed.actions

        for entry in self.entries:
            logger.debug(f"Entry {entry.id}: {entry.time_range} {entry.content} ({entry.immersion})")

        # Classification must settle before any statistic is computed
        user_entries = get_user_entries(self.entries)
        self.classification = categorize_entries(user_entries, self.client, self.mapper)

        if self.classification.mode == MODE_KEYWORD:
            logger.info(constants.MESSAGES["keyword_mode"])

        self.recompute()

        if with_advice and self.client is not None:
            self._start_advice()

        return self.stats

    def recompute(self) -> SummaryStats:
        """Rebuild the statistics snapshot from the current entries."""
        self.stats = get_summary_stats(self.entries, self.settings.energy_change_threshold)
        logger.debug(f"Category stats: {self.stats.category_stats}")
        return self.stats

    def find_entry(self, entry_id: int) -> Entry:
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        raise KeyError(f"No entry with id {entry_id}")

    def reassign(self, entry_id: int, category) -> SummaryStats:
        """
        Manually move an entry to another category and recompute everything.

        Raises:
            KeyError: if no entry has this id
            ValueError: if the category is not one of the six
        """
        entry = self.find_entry(entry_id)
        new_category = Category.parse(category)

        if entry.category is not new_category:
            logger.info(f"Reassigned entry {entry_id}: {entry.category.value} -> {new_category.value}")
            entry.category = new_category
            return self.recompute()

        return self.stats

    def grouped_entries(self) -> dict:
        return group_entries_by_category(self.entries)

    def _start_advice(self) -> None:
        generation = self.advice.generation
        snapshot = [Entry(e.id, e.start, e.end, e.content, e.immersion, e.category) for e in self.entries]

        if self._executor is None:
            self._executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)

        self.advice.mark_pending(generation)
        self._executor.submit(self._run_advice, snapshot, generation)

    def _run_advice(self, entries: list[Entry], generation: int) -> None:
        try:
            text = generate_advice(entries, self.client)
        except AdviceGenerationFailure as e:
            self._fail_advice(generation, str(e))
            return
        except Exception as e:
            logger.error(f"Unexpected error generating advice: {e}")
            self._fail_advice(generation, str(e))
            return

        if not self.advice.resolve(generation, text):
            logger.debug(f"Discarding stale advice (generation {generation})")

    def _fail_advice(self, generation: int, error: str) -> None:
        if not self.advice.fail(generation, error):
            logger.debug(f"Discarding stale advice failure (generation {generation})")

    def wait_for_advice(self, timeout: Optional[float] = None) -> bool:
        """Block until advice is ready or failed. Returns False on timeout."""
        return self.advice.wait(timeout)

    def close(self, wait: bool = False) -> None:
        """Stop the advice worker. Pending advice is abandoned unless wait is set."""
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None

    def __enter__(self) -> "AnalysisSession":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
