"""
Lesson gating rules.

Accessibility is derived on every read and never stored. In sequential mode a
lesson unlocks only when every lesson before it in the course-wide order
(``order_index`` across all modules) is complete; module boundaries play no part.
"""
from typing import Any, Collection, Dict, Sequence

from coursepath.models.enums import LessonAccessMode


def _is_all_access(access_mode) -> bool:
    # anything that is not explicitly all_access is gated
    try:
        return LessonAccessMode(access_mode) is LessonAccessMode.ALL_ACCESS
    except ValueError:
        return False


def is_lesson_accessible(
    access_mode,
    ordered_lessons: Sequence[Any],
    completed_ids: Collection[int],
    lesson_id: int,
    is_privileged: bool = False,
) -> bool:
    """
    Decide whether one lesson is open for a user.

    Args:
        access_mode: course ``lesson_access_mode``
        ordered_lessons: every lesson of the course, ascending ``order_index``
        completed_ids: ids of the lessons the user has completed
        lesson_id: lesson being opened
        is_privileged: admins skip gating entirely

    Returns False when the lesson is not part of ``ordered_lessons``.
    """
    if is_privileged or _is_all_access(access_mode):
        return True

    all_prior_complete = True
    for lesson in ordered_lessons:
        if lesson.id == lesson_id:
            return all_prior_complete
        if lesson.id not in completed_ids:
            all_prior_complete = False
    return False


def lesson_accessibility(
    access_mode,
    ordered_lessons: Sequence[Any],
    completed_ids: Collection[int],
    is_privileged: bool = False,
) -> Dict[int, bool]:
    """Evaluate every lesson of a course in one forward pass, keyed by lesson id."""
    if is_privileged or _is_all_access(access_mode):
        return {lesson.id: True for lesson in ordered_lessons}

    result = {}
    all_prior_complete = True
    for lesson in ordered_lessons:
        result[lesson.id] = all_prior_complete
        if lesson.id not in completed_ids:
            all_prior_complete = False
    return result
