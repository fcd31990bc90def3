from datetime import datetime
from typing import List, Optional, Set, Tuple

from sqlalchemy import func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import ArgumentError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from coursepath.db.models import Course, CourseModule, Lesson, CourseEnrollment, LessonProgress

_UPSERT_BUILDERS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


async def fetch_course(session: AsyncSession, course_id: int) -> Optional[Course]:
    result = await session.execute(select(Course).filter(Course.id == course_id))
    return result.scalars().first()


async def fetch_modules(session: AsyncSession, course_id: int) -> List[CourseModule]:
    result = await session.execute(
        select(CourseModule)
        .filter(CourseModule.course_id == course_id)
        .order_by(CourseModule.order_index, CourseModule.id)
    )
    return list(result.scalars().all())


async def fetch_lessons(session: AsyncSession, course_id: int) -> List[Lesson]:
    result = await session.execute(
        select(Lesson)
        .filter(Lesson.course_id == course_id)
        .order_by(Lesson.order_index, Lesson.id)
    )
    return list(result.scalars().all())


async def count_lessons(session: AsyncSession, course_id: int) -> int:
    result = await session.execute(
        select(func.count()).select_from(Lesson).filter(Lesson.course_id == course_id)
    )
    return result.scalar_one_or_none() or 0


async def fetch_lesson_in_course(session: AsyncSession, lesson_id: int, course_id: int) -> Optional[Lesson]:
    result = await session.execute(select(Lesson).filter_by(id=lesson_id, course_id=course_id))
    return result.scalars().first()


async def fetch_completion_set(session: AsyncSession, user_id: int, course_id: int) -> Set[int]:
    result = await session.execute(
        select(LessonProgress.lesson_id).filter_by(user_id=user_id, course_id=course_id, completed=True)
    )
    return set(result.scalars().all())


async def fetch_progress_records(session: AsyncSession, user_id: int, course_id: int) -> List[LessonProgress]:
    result = await session.execute(
        select(LessonProgress)
        .filter_by(user_id=user_id, course_id=course_id)
        .order_by(LessonProgress.lesson_id)
    )
    return list(result.scalars().all())


async def fetch_progress(session: AsyncSession, user_id: int, lesson_id: int) -> Optional[LessonProgress]:
    # upserts bypass the identity map, so reload any instance already in the session
    result = await session.execute(
        select(LessonProgress)
        .filter_by(user_id=user_id, lesson_id=lesson_id)
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def upsert_progress(
    session: AsyncSession,
    user_id: int,
    lesson_id: int,
    course_id: int,
    completed: bool,
    completed_at: Optional[datetime],
) -> None:
    """
    Write the completion state of one (user, lesson) pair in a single statement.

    Uses ``INSERT ... ON CONFLICT (user_id, lesson_id) DO UPDATE`` so two
    concurrent writes for the same pair resolve as last-write-wins in the
    database. Does not commit.
    """
    dialect = session.get_bind().dialect.name
    builder = _UPSERT_BUILDERS.get(dialect)
    if builder is None:
        raise ArgumentError(f"Progress upsert is not supported for dialect '{dialect}'")

    stmt = builder(LessonProgress).values(
        user_id=user_id,
        lesson_id=lesson_id,
        course_id=course_id,
        completed=completed,
        completed_at=completed_at,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[LessonProgress.user_id, LessonProgress.lesson_id],
        set_={
            "course_id": stmt.excluded.course_id,
            "completed": stmt.excluded.completed,
            "completed_at": stmt.excluded.completed_at,
        },
    )
    await session.execute(stmt)


async def fetch_enrollment(session: AsyncSession, user_id: int, course_id: int) -> bool:
    result = await session.execute(select(CourseEnrollment.id).filter_by(user_id=user_id, course_id=course_id))
    return result.scalars().first() is not None


async def fetch_enrolled_courses(session: AsyncSession, user_id: int) -> List[Tuple[CourseEnrollment, Course]]:
    result = await session.execute(
        select(CourseEnrollment, Course)
        .join(Course, CourseEnrollment.course_id == Course.id)
        .filter(CourseEnrollment.user_id == user_id)
        .order_by(CourseEnrollment.enrolled_at.desc(), CourseEnrollment.id.desc())
    )
    return [(enrollment, course) for enrollment, course in result.all()]
