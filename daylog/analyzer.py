"""
Analyzer - Statistics derived from categorised entries.

Every function is pure and recomputes from scratch.
"""

from daylog import constants
from daylog.models import (
    Category,
    CategoryImmersion,
    EnergyTransition,
    Entry,
    SummaryStats,
    TransitionPoint,
)
from daylog.utils import round_half_up


def calculate_category_stats(entries: list[Entry]) -> dict[Category, int]:
    """
    Total minutes per category.

    Categories with no entries are absent rather than zero.
    """
    stats: dict[Category, int] = {}
    for entry in entries:
        stats[entry.category] = stats.get(entry.category, 0) + entry.duration
    return stats


def calculate_immersion_distribution(entries: list[Entry]) -> dict[int, int]:
    """
    Minutes spent at each immersion level 1..5.

    Entries at level 0 or above 5 are left out entirely.
    """
    distribution = {level: 0 for level in reversed(constants.IMMERSION_LEVELS)}
    for entry in entries:
        if entry.immersion in distribution:
            distribution[entry.immersion] += entry.duration
    return distribution


def calculate_total_time(entries: list[Entry]) -> int:
    """Total minutes across all entries."""
    return sum(entry.duration for entry in entries)


def analyze_immersion_by_category(entries: list[Entry]) -> list[CategoryImmersion]:
    """
    Duration-weighted average immersion per category, highest first.

    Resting entries and entries without immersion are excluded. Ties keep
    the order in which categories were first seen.

    Args:
        entries: Categorised entries

    Returns:
        List of CategoryImmersion, averages rounded to one decimal
    """
    weighted: dict[Category, int] = {}
    minutes: dict[Category, int] = {}

    for entry in entries:
        if entry.category is Category.RESTING or entry.immersion == 0:
            continue
        weighted[entry.category] = weighted.get(entry.category, 0) + entry.immersion * entry.duration
        minutes[entry.category] = minutes.get(entry.category, 0) + entry.duration

    analysis = [
        CategoryImmersion(
            category=category,
            average_immersion=round_half_up(weighted[category] / total),
            total_time=total,
        )
        for category, total in minutes.items()
        if total > 0
    ]

    analysis.sort(key=lambda item: item.average_immersion, reverse=True)
    return analysis


def identify_energy_transitions(
    entries: list[Entry],
    threshold: int = constants.ENERGY_CHANGE_THRESHOLD,
) -> list[EnergyTransition]:
    """
    Find jumps in immersion between consecutive non-resting entries.

    Args:
        entries: Categorised entries in chronological order
        threshold: Minimum absolute change to report

    Returns:
        Transitions in chronological order
    """
    active = [entry for entry in entries if entry.category is not Category.RESTING]
    transitions = []

    for previous, current in zip(active, active[1:]):
        difference = current.immersion - previous.immersion
        if abs(difference) < threshold:
            continue

        transitions.append(EnergyTransition(
            time=current.start,
            type="increase" if difference > 0 else "decrease",
            difference=difference,
            from_=TransitionPoint(previous.content, previous.immersion),
            to=TransitionPoint(current.content, current.immersion),
        ))

    return transitions


def calculate_productivity_score(entries: list[Entry]) -> int:
    """
    Share of active time spent deeply immersed in work or development.

    Returns:
        Integer percentage 0..100; 0 when there is no active time
    """
    productive_high_immersion = 0
    total_active = 0

    for entry in entries:
        if entry.category is Category.RESTING:
            continue

        total_active += entry.duration

        if entry.category.is_productive and entry.immersion >= constants.HIGH_IMMERSION:
            productive_high_immersion += entry.duration

    if total_active == 0:
        return 0

    return int(round_half_up(productive_high_immersion / total_active * 100, 0))


def group_entries_by_category(entries: list[Entry]) -> dict[Category, list[Entry]]:
    """Partition entries by category, keeping their relative order."""
    grouped: dict[Category, list[Entry]] = {}
    for entry in entries:
        grouped.setdefault(entry.category, []).append(entry)
    return grouped


def get_summary_stats(
    entries: list[Entry],
    threshold: int = constants.ENERGY_CHANGE_THRESHOLD,
) -> SummaryStats:
    """Compute every statistic for one snapshot of the entries."""
    return SummaryStats(
        total_time=calculate_total_time(entries),
        category_stats=calculate_category_stats(entries),
        immersion_distribution=calculate_immersion_distribution(entries),
        immersion_analysis=analyze_immersion_by_category(entries),
        transitions=identify_energy_transitions(entries, threshold),
        productivity_score=calculate_productivity_score(entries),
        entry_count=len(entries),
    )
