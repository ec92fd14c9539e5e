"""
Log Parser - Turns the line-oriented daily log into time entries.

Grammar, one item per line:

    - 09:00 ~ 10:00 content ❚❚❚     time entry, bars give immersion
      - > thought                     free-floating thought
      - v action                      free-floating action

Unrecognised lines are dropped without error.
"""

import logging
import re
from typing import Optional

from daylog import constants
from daylog.models import Category, Entry, NoValidEntries, ParsedLog
from daylog.utils import to_minutes

logger = logging.getLogger(__name__)


def parse_log_text(raw_text: str) -> ParsedLog:
    """
    Parse raw log text into entries, thoughts and actions.

    Args:
        raw_text: Multi-line log text

    Returns:
        ParsedLog with entries in source order
    """
    parsed = ParsedLog()

    for index, line in enumerate(raw_text.splitlines()):
        clean_line = line.strip()
        if not clean_line:
            continue

        thought_match = constants.THOUGHT_PATTERN.match(clean_line)
        if thought_match:
            parsed.thoughts.append(thought_match.group(1).strip())
            continue

        action_match = constants.ACTION_PATTERN.match(clean_line)
        if action_match:
            parsed.actions.append(action_match.group(1).strip())
            continue

        time_match = constants.TIME_HEADER_PATTERN.search(clean_line)
        if time_match:
            try:
                parsed.entries.append(_parse_time_entry(clean_line, time_match, index))
            except ValueError as e:
                logger.warning(f"Skipping line {index + 1}: {e}")
            continue

        logger.debug(f"Skipping unrecognised line {index + 1}: {clean_line[:40]}")

    logger.debug(
        f"Parsed {len(parsed.entries)} entries, {len(parsed.thoughts)} thoughts, "
        f"{len(parsed.actions)} actions"
    )
    return parsed


def _parse_time_entry(line: str, time_match: re.Match, index: int) -> Entry:
    """Build an Entry from a matched time-header line."""
    start, end = time_match.group(1), time_match.group(2)
    # Rejects impossible times such as 25:00
    to_minutes(start)
    to_minutes(end)
    rest = line[time_match.end():]

    immersion, rest = _extract_immersion(rest)

    return Entry(
        id=index + 1,
        start=start,
        end=end,
        content=rest.strip(),
        immersion=immersion,
        category=Category.ROUTINE,
    )


def _extract_immersion(body: str) -> tuple[int, str]:
    """
    Count the first run of bar glyphs and remove it from the body.

    Returns:
        (immersion, body without the bar run)
    """
    bars_match = constants.BARS_PATTERN.search(body)
    if not bars_match:
        return 0, body

    immersion = len(bars_match.group(0))
    body = body[:bars_match.start()] + body[bars_match.end():]
    return immersion, body


def add_sleep_period_if_missing(entries: list[Entry]) -> list[Entry]:
    """
    Sort entries by start time and prepend a sleep block from 00:00.

    The list is modified in place. Applying this twice never adds a second
    sleep entry.

    Args:
        entries: Parsed entries

    Returns:
        The same list, for chaining
    """
    if not entries:
        return entries

    # Fixed-width HH:MM sorts correctly as strings
    entries.sort(key=lambda e: e.start)

    first_start = entries[0].start
    if first_start != "00:00":
        sleep_entry = Entry(
            id=constants.SLEEP_ENTRY_ID,
            start="00:00",
            end=first_start,
            content=constants.SLEEP_PLACEHOLDER,
            immersion=0,
            category=Category.RESTING,
        )
        entries.insert(0, sleep_entry)
        logger.debug(f"Added sleep period 00:00-{first_start}")

    return entries


def validate_entries(entries: Optional[list[Entry]]) -> None:
    """
    Ensure the log produced at least one entry.

    Raises:
        NoValidEntries: if entries is empty
    """
    if not entries:
        raise NoValidEntries()


def get_user_entries(entries: list[Entry]) -> list[Entry]:
    """Entries written by the user, excluding the synthetic sleep block."""
    return [entry for entry in entries if not entry.is_synthetic]


def to_log_text(entries: list[Entry], bar: str = "❚") -> str:
    """
    Render entries back into log notation, skipping the synthetic sleep block.

    Args:
        entries: Entries to render
        bar: Glyph used for immersion bars

    Returns:
        Log text that parses back to the same entries
    """
    lines = []
    for entry in get_user_entries(entries):
        line = f"- {entry.start} ~ {entry.end} {entry.content}"
        if entry.immersion:
            line += f" {bar * entry.immersion}"
        lines.append(line.rstrip())
    return "\n".join(lines)
