from collections import namedtuple
from itertools import combinations

from coursepath.models.enums import LessonAccessMode
from coursepath.services.lesson_access import is_lesson_accessible, lesson_accessibility

L = namedtuple("L", ["id", "order_index"])

LESSONS = [L(10, 0), L(11, 1), L(12, 2), L(13, 3)]


def test_first_lesson_open_with_empty_completion() -> None:
    assert is_lesson_accessible("sequential", LESSONS, set(), 10) is True


def test_first_lesson_open_for_any_completion_set() -> None:
    ids = [lesson.id for lesson in LESSONS]
    for size in range(len(ids) + 1):
        for completed in combinations(ids, size):
            assert is_lesson_accessible("sequential", LESSONS, set(completed), 10) is True


def test_sequential_unlocks_after_prefix() -> None:
    completed = {10}
    assert is_lesson_accessible("sequential", LESSONS, completed, 11) is True
    assert is_lesson_accessible("sequential", LESSONS, completed, 12) is False


def test_skipped_lesson_locks_everything_after_it() -> None:
    completed = {10, 12}
    assert is_lesson_accessible("sequential", LESSONS, completed, 11) is True
    assert is_lesson_accessible("sequential", LESSONS, completed, 12) is False
    assert is_lesson_accessible("sequential", LESSONS, completed, 13) is False


def test_all_access_opens_every_lesson() -> None:
    for lesson in LESSONS:
        assert is_lesson_accessible(LessonAccessMode.ALL_ACCESS, LESSONS, set(), lesson.id) is True


def test_privileged_viewer_bypasses_gating() -> None:
    for lesson in LESSONS:
        assert is_lesson_accessible("sequential", LESSONS, set(), lesson.id, is_privileged=True) is True
    assert lesson_accessibility("sequential", LESSONS, set(), is_privileged=True) == {
        10: True, 11: True, 12: True, 13: True
    }


def test_unknown_lesson_fails_closed() -> None:
    assert is_lesson_accessible("sequential", LESSONS, {10, 11, 12, 13}, 99) is False
    assert is_lesson_accessible("sequential", [], set(), 10) is False


def test_unknown_mode_is_gated() -> None:
    assert is_lesson_accessible("locked_down", LESSONS, set(), 11) is False
    assert is_lesson_accessible(None, LESSONS, set(), 10) is True


def test_single_pass_matches_per_lesson_evaluation() -> None:
    ids = [lesson.id for lesson in LESSONS]
    for mode in ("sequential", "all_access"):
        for size in range(len(ids) + 1):
            for completed in combinations(ids, size):
                completed = set(completed)
                bulk = lesson_accessibility(mode, LESSONS, completed)
                for lesson_id in ids:
                    assert bulk[lesson_id] == is_lesson_accessible(mode, LESSONS, completed, lesson_id)


def test_scenario_b_accessibility() -> None:
    lessons = [L(1, 0), L(2, 1), L(3, 2)]
    assert lesson_accessibility("sequential", lessons, {1}) == {1: True, 2: True, 3: False}


def test_scenario_c_all_complete() -> None:
    lessons = [L(1, 0), L(2, 1), L(3, 2)]
    assert lesson_accessibility("sequential", lessons, {1, 2, 3}) == {1: True, 2: True, 3: True}
