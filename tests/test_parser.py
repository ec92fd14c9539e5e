import pytest

from daylog.constants import DEMO_DATA, SLEEP_PLACEHOLDER
from daylog.models import Category, NoValidEntries
from daylog.parser import (
    add_sleep_period_if_missing,
    get_user_entries,
    parse_log_text,
    to_log_text,
    validate_entries,
)


def test_parses_time_entries(sample_log):
    parsed = parse_log_text(sample_log)

    assert len(parsed.entries) == 2
    first, second = parsed.entries
    assert (first.start, first.end, first.content, first.immersion, first.duration) == (
        "09:00", "10:00", "閱讀", 3, 60,
    )
    assert (second.start, second.end, second.content, second.immersion, second.duration) == (
        "10:00", "11:30", "開會", 2, 90,
    )


def test_new_entries_default_to_routine(sample_log):
    parsed = parse_log_text(sample_log)
    assert all(entry.category is Category.ROUTINE for entry in parsed.entries)


def test_ids_follow_source_lines():
    text = "\n- 08:00 ~ 09:00 早餐 ❚❚\n  - > 想法\n\n- 09:00 ~ 10:00 工作 ❚❚❚"
    parsed = parse_log_text(text)
    assert [entry.id for entry in parsed.entries] == [2, 5]


def test_thoughts_and_actions_are_collected():
    parsed = parse_log_text(DEMO_DATA)

    assert parsed.thoughts == ["學習新的設計模式"]
    assert parsed.actions == ["做筆記整理重點"]
    assert len(parsed.entries) == 10


def test_thought_and_action_without_dash():
    parsed = parse_log_text("> 只是想法\nv 去做")
    assert parsed.thoughts == ["只是想法"]
    assert parsed.actions == ["去做"]
    assert parsed.entries == []


def test_unrecognised_lines_are_dropped():
    parsed = parse_log_text("今天好累\n# 標題\n- 09:00 ~ 10:00 散步 ❚")
    assert len(parsed.entries) == 1
    assert parsed.thoughts == []
    assert parsed.actions == []


def test_time_header_tolerates_spacing_and_pipe_bars():
    parsed = parse_log_text("- 13:00~14:00 寫程式 |||| ")
    entry = parsed.entries[0]
    assert entry.immersion == 4
    assert entry.content == "寫程式"


def test_bars_may_appear_before_text():
    entry = parse_log_text("- 13:00 ~ 14:00 ❚❚ 午休後").entries[0]
    assert entry.immersion == 2
    assert entry.content == "午休後"


def test_missing_bars_means_zero_immersion():
    entry = parse_log_text("- 12:00 ~ 13:00 午餐").entries[0]
    assert entry.immersion == 0
    assert entry.content == "午餐"


def test_impossible_times_are_dropped():
    parsed = parse_log_text("- 23:00 ~ 99:99 熬夜\n- 25:00 ~ 26:00 夢遊\n- 22:00 ~ 23:00 看書 ❚❚")

    assert [(e.id, e.start, e.end) for e in parsed.entries] == [(3, "22:00", "23:00")]


def test_immersion_above_five_is_not_clamped():
    entry = parse_log_text("- 09:00 ~ 10:00 衝刺 ❚❚❚❚❚❚❚").entries[0]
    assert entry.immersion == 7


def test_entry_crossing_midnight():
    entry = parse_log_text("- 23:30 ~ 00:30 追劇 ❚").entries[0]
    assert entry.duration == 60


def test_sleep_period_is_added(sample_log):
    entries = add_sleep_period_if_missing(parse_log_text(sample_log).entries)

    sleep = entries[0]
    assert len(entries) == 3
    assert sleep.id == 0
    assert (sleep.start, sleep.end, sleep.duration) == ("00:00", "09:00", 540)
    assert sleep.content == SLEEP_PLACEHOLDER
    assert sleep.immersion == 0
    assert sleep.category is Category.RESTING
    assert sleep.is_synthetic
    assert not any(entry.is_synthetic for entry in entries[1:])


def test_sleep_period_is_idempotent(sample_log):
    entries = parse_log_text(sample_log).entries
    add_sleep_period_if_missing(entries)
    add_sleep_period_if_missing(entries)

    assert [entry.id for entry in entries].count(0) == 1
    assert len(entries) == 3


def test_no_sleep_period_when_day_starts_at_midnight():
    entries = parse_log_text("- 00:00 ~ 06:00 睡覺\n- 06:00 ~ 07:00 晨跑 ❚❚❚").entries
    add_sleep_period_if_missing(entries)
    assert [entry.id for entry in entries] == [1, 2]


def test_entries_are_sorted_before_gap_filling():
    entries = parse_log_text("- 14:00 ~ 15:00 下午\n- 08:00 ~ 09:00 早上").entries
    add_sleep_period_if_missing(entries)

    assert [entry.start for entry in entries] == ["00:00", "08:00", "14:00"]
    assert entries[0].end == "08:00"


def test_sleep_period_on_empty_list():
    assert add_sleep_period_if_missing([]) == []


def test_validate_rejects_empty_log():
    with pytest.raises(NoValidEntries):
        validate_entries(parse_log_text("沒有時間的內容\n\n").entries)


def test_validate_accepts_entries(sample_log):
    validate_entries(parse_log_text(sample_log).entries)


def test_get_user_entries_skips_sleep(sample_log):
    entries = add_sleep_period_if_missing(parse_log_text(sample_log).entries)
    assert [entry.id for entry in get_user_entries(entries)] == [1, 2]


def test_reparse_of_rendered_log_is_stable():
    first = add_sleep_period_if_missing(parse_log_text(DEMO_DATA).entries)
    second = parse_log_text(to_log_text(first)).entries

    def shape(entries):
        return [(e.start, e.end, e.content, e.immersion) for e in entries]

    assert shape(second) == shape(get_user_entries(first))
