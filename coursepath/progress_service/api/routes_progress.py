from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging

from .. import schemas
from coursepath.activity import post_activity_log
from coursepath.db.database import get_async_session
from coursepath.models.enums import CourseStatus
from coursepath.security import CurrentUser, get_current_user
from coursepath.services import progress_store
from coursepath.services.completion import mark_lesson_complete, mark_lesson_incomplete
from coursepath.services.lesson_access import is_lesson_accessible, lesson_accessibility
from coursepath.services.progress_summary import aggregate_course_progress, next_incomplete_lesson

router = APIRouter(tags=["Progress"])

logger = logging.getLogger("progress_service")


async def _check_lesson_preconditions(db: AsyncSession, user_id: int, data: schemas.LessonProgressRequest):
    # Проверка записи пользователя на курс
    if not await progress_store.fetch_enrollment(db, user_id, data.course_id):
        logger.warning(f"User {user_id} is not enrolled in course {data.course_id}")
        raise HTTPException(status_code=403, detail="User is not enrolled in this course")

    if not await progress_store.fetch_lesson_in_course(db, data.lesson_id, data.course_id):
        logger.warning(f"Lesson {data.lesson_id} not found in course {data.course_id}")
        raise HTTPException(status_code=404, detail="Lesson not found in this course")


async def _progress_response(db: AsyncSession, user_id: int, data: schemas.LessonProgressRequest, detail: str):
    record = await progress_store.fetch_progress(db, user_id, data.lesson_id)
    lessons = await progress_store.fetch_lessons(db, data.course_id)
    completed_ids = await progress_store.fetch_completion_set(db, user_id, data.course_id)
    course_progress = aggregate_course_progress(lessons, completed_ids)
    return schemas.LessonProgressUpdateOut(
        detail=detail,
        progress=schemas.LessonProgressOut.model_validate(record),
        course_progress=schemas.CourseProgressOut.model_validate(course_progress),
        next_lesson_id=next_incomplete_lesson(lessons, completed_ids),
    )


@router.get("/lessons", response_model=List[schemas.LessonProgressOut])
async def get_lesson_progress(
    course_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    logger.info(f"Fetching lesson progress for user {current_user.user_id} course {course_id}")
    return await progress_store.fetch_progress_records(db, current_user.user_id, course_id)


@router.post("/lessons", response_model=schemas.LessonProgressUpdateOut)
async def complete_lesson(
    data: schemas.LessonProgressRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    user_id = current_user.user_id
    logger.info(f"Received complete_lesson request from user {user_id} with data: {data}")
    await _check_lesson_preconditions(db, user_id, data)

    if not await mark_lesson_complete(db, user_id, data.lesson_id, data.course_id):
        raise HTTPException(status_code=500, detail="Failed to update progress")

    response = await _progress_response(db, user_id, data, "Lesson marked as completed")
    await post_activity_log(
        user_id,
        f"Updated progress in course {data.course_id}: completed lessons {response.course_progress.completed}",
        "course_progress",
        data.course_id,
    )
    return response


@router.delete("/lessons", response_model=schemas.LessonProgressUpdateOut)
async def undo_complete_lesson(
    data: schemas.LessonProgressRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    user_id = current_user.user_id
    logger.info(f"Received undo_complete_lesson request from user {user_id} with data: {data}")
    await _check_lesson_preconditions(db, user_id, data)

    if not await mark_lesson_incomplete(db, user_id, data.lesson_id, data.course_id):
        raise HTTPException(status_code=500, detail="Failed to update progress")

    response = await _progress_response(db, user_id, data, "Lesson marked as not completed")
    await post_activity_log(
        user_id,
        f"Removed lesson completion in course {data.course_id}: lesson {data.lesson_id}",
        "course_progress",
        data.course_id,
    )
    return response


@router.get("/my-courses", response_model=List[schemas.EnrolledCourseOut])
async def get_my_courses(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    user_id = current_user.user_id
    logger.info(f"Fetching courses progress for user {user_id}")
    enrolled = await progress_store.fetch_enrolled_courses(db, user_id)

    courses_out = []
    for enrollment, course in enrolled:
        lessons = await progress_store.fetch_lessons(db, course.id)
        completed_ids = await progress_store.fetch_completion_set(db, user_id, course.id)
        course_progress = aggregate_course_progress(lessons, completed_ids)

        # the dashboard shows finished courses without a resume link
        next_lesson_id = None
        if course_progress.completed < course_progress.total:
            next_lesson_id = next_incomplete_lesson(lessons, completed_ids)

        courses_out.append(schemas.EnrolledCourseOut(
            id=course.id,
            title=course.title,
            description=course.description,
            thumbnail_url=course.thumbnail_url,
            status=course.status,
            lesson_access_mode=course.lesson_access_mode,
            enrolled_at=enrollment.enrolled_at,
            total_lessons=course_progress.total,
            completed_lessons=course_progress.completed,
            progress_percentage=course_progress.percentage,
            next_lesson_id=next_lesson_id,
        ))
    logger.info(f"Found {len(courses_out)} enrolled courses for user {user_id}")
    return courses_out


@router.get("/{course_id}", response_model=schemas.CourseProgressDetailOut)
async def get_course_progress(
    course_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    user_id = current_user.user_id
    course = await progress_store.fetch_course(db, course_id)
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    if not current_user.is_admin and not await progress_store.fetch_enrollment(db, user_id, course_id):
        logger.warning(f"No enrollment found for user {user_id} course {course_id}")
        raise HTTPException(status_code=403, detail="User is not enrolled in this course")

    lessons = await progress_store.fetch_lessons(db, course_id)
    completed_ids = await progress_store.fetch_completion_set(db, user_id, course_id)
    accessibility = lesson_accessibility(
        course.lesson_access_mode, lessons, completed_ids, is_privileged=current_user.is_admin
    )
    return schemas.CourseProgressDetailOut(
        course_id=course.id,
        lesson_access_mode=course.lesson_access_mode,
        progress=schemas.CourseProgressOut.model_validate(aggregate_course_progress(lessons, completed_ids)),
        next_lesson_id=next_incomplete_lesson(lessons, completed_ids),
        accessible_lesson_ids=[lesson.id for lesson in lessons if accessibility[lesson.id]],
    )


@router.get("/{course_id}/lessons/{lesson_id}/access", response_model=schemas.LessonAccessOut)
async def get_lesson_access(
    course_id: int,
    lesson_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    user_id = current_user.user_id
    course = await progress_store.fetch_course(db, course_id)
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    if not current_user.is_admin:
        if not await progress_store.fetch_enrollment(db, user_id, course_id):
            logger.warning(f"No enrollment found for user {user_id} course {course_id}")
            raise HTTPException(status_code=403, detail="User is not enrolled in this course")
        if course.status != CourseStatus.PUBLISHED.value:
            raise HTTPException(status_code=403, detail="Course not available")

    lessons = await progress_store.fetch_lessons(db, course_id)
    completed_ids = await progress_store.fetch_completion_set(db, user_id, course_id)
    accessible = is_lesson_accessible(
        course.lesson_access_mode, lessons, completed_ids, lesson_id, is_privileged=current_user.is_admin
    )
    return {"lesson_id": lesson_id, "is_accessible": accessible}
