from dataclasses import dataclass
from typing import Any, Collection, Optional, Sequence


@dataclass(frozen=True)
class ModuleProgress:
    lessons_count: int
    completed_lessons_count: int

    @property
    def percentage(self) -> int:
        return completion_percentage(self.completed_lessons_count, self.lessons_count)


@dataclass(frozen=True)
class CourseProgress:
    total: int
    completed: int
    percentage: int


def completion_percentage(completed: int, total: int) -> int:
    """Whole-number percentage rounded half up; 0 for an empty course."""
    if total <= 0:
        return 0
    return (200 * completed + total) // (2 * total)


def _count_completed(lessons: Sequence[Any], completed_ids: Collection[int]) -> int:
    return sum(1 for lesson in lessons if lesson.id in completed_ids)


def aggregate_module_progress(lessons: Sequence[Any], completed_ids: Collection[int]) -> ModuleProgress:
    return ModuleProgress(
        lessons_count=len(lessons),
        completed_lessons_count=_count_completed(lessons, completed_ids),
    )


def aggregate_course_progress(lessons: Sequence[Any], completed_ids: Collection[int]) -> CourseProgress:
    """
    Summarise completion across a whole course.

    Completed ids that do not belong to ``lessons`` are ignored, so stale
    progress rows cannot push the percentage past 100.
    """
    total = len(lessons)
    completed = _count_completed(lessons, completed_ids)
    return CourseProgress(total=total, completed=completed, percentage=completion_percentage(completed, total))


def next_incomplete_lesson(ordered_lessons: Sequence[Any], completed_ids: Collection[int]) -> Optional[int]:
    """
    Resume point for a user: first lesson not yet completed.

    A fully completed course resumes at its last lesson; an empty course has no
    resume point. Gating is not consulted here.
    """
    if not ordered_lessons:
        return None
    for lesson in ordered_lessons:
        if lesson.id not in completed_ids:
            return lesson.id
    return ordered_lessons[-1].id
