import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from coursepath.services import progress_store

logger = logging.getLogger("coursepath.completion")


async def _set_completion(session: AsyncSession, user_id: int, lesson_id: int, course_id: int, completed: bool) -> bool:
    completed_at = datetime.utcnow() if completed else None
    try:
        await progress_store.upsert_progress(session, user_id, lesson_id, course_id, completed, completed_at)
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(
            f"Failed to set completed={completed} for user {user_id} lesson {lesson_id} course {course_id}: {e}"
        )
        return False
    logger.info(f"User {user_id} lesson {lesson_id} in course {course_id} set completed={completed}")
    return True


async def mark_lesson_complete(session: AsyncSession, user_id: int, lesson_id: int, course_id: int) -> bool:
    """
    Mark a lesson as completed for a user.

    Enrollment and lesson/course membership must already be checked by the
    caller. Repeating the call leaves the same state. Returns False if the
    write failed; nothing is retried.
    """
    return await _set_completion(session, user_id, lesson_id, course_id, True)


async def mark_lesson_incomplete(session: AsyncSession, user_id: int, lesson_id: int, course_id: int) -> bool:
    """Mark a lesson as not completed. Creates the progress row if none exists."""
    return await _set_completion(session, user_id, lesson_id, course_id, False)
