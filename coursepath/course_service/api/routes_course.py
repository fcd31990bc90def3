from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import List, Optional
from datetime import datetime
import logging

from .. import schemas
from coursepath.activity import post_activity_log
from coursepath.db import models
from coursepath.db.database import get_async_session
from coursepath.models.enums import CourseStatus, LessonType
from coursepath.progress_service.schemas import CourseProgressOut
from coursepath.security import CurrentUser, get_current_user, get_optional_user
from coursepath.services import progress_store
from coursepath.services.lesson_access import is_lesson_accessible, lesson_accessibility
from coursepath.services.progress_summary import (
    aggregate_course_progress, aggregate_module_progress, next_incomplete_lesson
)

course_router = APIRouter(tags=["Courses"])

logger = logging.getLogger("course_service")


def _is_published(course: models.Course) -> bool:
    return course.status == CourseStatus.PUBLISHED.value


def _course_out(course: models.Course, lesson_count: int, is_enrolled: bool = False) -> schemas.CourseOut:
    course_out = schemas.CourseOut.model_validate(course)
    course_out.lesson_count = lesson_count
    course_out.is_enrolled = is_enrolled
    return course_out


@course_router.get("/", response_model=List[schemas.CourseOut])
async def list_courses(db: AsyncSession = Depends(get_async_session)):
    lesson_counts = (
        select(models.Lesson.course_id, func.count(models.Lesson.id).label("lesson_count"))
        .group_by(models.Lesson.course_id)
        .subquery()
    )
    result = await db.execute(
        select(models.Course, lesson_counts.c.lesson_count)
        .outerjoin(lesson_counts, lesson_counts.c.course_id == models.Course.id)
        .filter(models.Course.status == CourseStatus.PUBLISHED.value)
        .order_by(models.Course.created_at.desc(), models.Course.id.desc())
    )
    return [_course_out(course, lesson_count or 0) for course, lesson_count in result.all()]


@course_router.post("/enroll", response_model=schemas.EnrollOut)
async def enroll_course(
    enroll_req: schemas.EnrollRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    user_id = current_user.user_id
    course_id = enroll_req.course_id
    logger.info(f"User {user_id} enroll request for course {course_id}")

    course = await progress_store.fetch_course(db, course_id)
    if not course:
        logger.warning(f"Course {course_id} not found")
        raise HTTPException(status_code=404, detail="Course not found")
    if not _is_published(course):
        raise HTTPException(status_code=400, detail="Course is not available yet")
    if not course.is_free:
        # paid courses are enrolled by the payment flow
        raise HTTPException(status_code=400, detail="This course is paid, use the purchase option")

    result = await db.execute(select(models.CourseEnrollment).filter_by(user_id=user_id, course_id=course_id))
    existing = result.scalars().first()
    if existing:
        logger.info(f"User {user_id} already enrolled in course {course_id}")
        return {"detail": "Already enrolled", "course_id": course_id, "enrolled_at": existing.enrolled_at}

    enrollment = models.CourseEnrollment(user_id=user_id, course_id=course_id, enrolled_at=datetime.utcnow())
    db.add(enrollment)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error enrolling user {user_id} in course {course_id}: {e}")
        raise HTTPException(status_code=500, detail="Could not enroll in course")

    logger.info(f"User {user_id} enrolled in course '{course.title}' ({course_id})")
    await post_activity_log(user_id, f'Started course "{course.title}"', "course", course_id)
    return {"detail": "Enrolled in course", "course_id": course_id, "enrolled_at": enrollment.enrolled_at}


@course_router.get("/{course_id}", response_model=schemas.CourseOut)
async def get_course_detail(
    course_id: int,
    current_user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_async_session),
):
    course = await progress_store.fetch_course(db, course_id)
    if not course or not _is_published(course):
        raise HTTPException(status_code=404, detail="Course not found")

    is_enrolled = False
    if current_user:
        is_enrolled = await progress_store.fetch_enrollment(db, current_user.user_id, course_id)

    lesson_count = await progress_store.count_lessons(db, course_id)
    return _course_out(course, lesson_count, is_enrolled)


async def _get_member_course(db: AsyncSession, course_id: int, current_user: CurrentUser) -> models.Course:
    course = await progress_store.fetch_course(db, course_id)
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    if current_user.is_admin:
        return course

    if not await progress_store.fetch_enrollment(db, current_user.user_id, course_id):
        logger.warning(f"User {current_user.user_id} is not enrolled in course {course_id}")
        raise HTTPException(status_code=403, detail="Not enrolled in course")
    if not _is_published(course):
        raise HTTPException(status_code=403, detail="Course not available")
    return course


@course_router.get("/{course_id}/preview", response_model=schemas.CoursePreviewOut)
async def get_course_preview(course_id: int, db: AsyncSession = Depends(get_async_session)):
    course = await progress_store.fetch_course(db, course_id)
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    if not _is_published(course):
        raise HTTPException(status_code=403, detail="Course not available for preview")

    modules = await progress_store.fetch_modules(db, course_id)
    lessons = await progress_store.fetch_lessons(db, course_id)
    modules_out = [
        schemas.PreviewModuleOut(
            id=module.id,
            title=module.title,
            description=module.description,
            order_index=module.order_index,
            lessons=[schemas.PreviewLessonOut.model_validate(lesson) for lesson in lessons if lesson.module_id == module.id],
        )
        for module in modules
    ]
    return schemas.CoursePreviewOut(
        course_id=course.id,
        modules=modules_out,
        stats=schemas.PreviewStatsOut(
            total_modules=len(modules),
            total_lessons=len(lessons),
            total_quizzes=sum(1 for lesson in lessons if lesson.type == LessonType.QUIZ.value),
        ),
    )


@course_router.get("/{course_id}/modules", response_model=schemas.CourseModulesOut)
async def get_course_modules(
    course_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    user_id = current_user.user_id
    is_admin = current_user.is_admin
    course = await _get_member_course(db, course_id, current_user)

    modules = await progress_store.fetch_modules(db, course_id)
    lessons = await progress_store.fetch_lessons(db, course_id)
    progress_map = {p.lesson_id: p for p in await progress_store.fetch_progress_records(db, user_id, course_id)}
    completed_ids = {lesson_id for lesson_id, p in progress_map.items() if p.completed}

    # gating runs over the whole course order, module boundaries are ignored
    accessibility = lesson_accessibility(course.lesson_access_mode, lessons, completed_ids, is_privileged=is_admin)

    modules_out = []
    for module in modules:
        module_lessons = [lesson for lesson in lessons if lesson.module_id == module.id]
        lessons_out = []
        for lesson in module_lessons:
            lesson_progress = progress_map.get(lesson.id)
            lessons_out.append(schemas.LessonWithProgressOut(
                id=lesson.id,
                module_id=lesson.module_id,
                title=lesson.title,
                type=lesson.type,
                order_index=lesson.order_index,
                duration_minutes=lesson.duration_minutes,
                video_url=lesson.video_url,
                completed=bool(lesson_progress and lesson_progress.completed),
                completed_at=lesson_progress.completed_at if lesson_progress else None,
                is_accessible=accessibility.get(lesson.id, False),
            ))
        modules_out.append(schemas.ModuleWithLessonsOut(
            id=module.id,
            title=module.title,
            description=module.description,
            order_index=module.order_index,
            lessons=lessons_out,
            progress=schemas.ModuleProgressOut.model_validate(aggregate_module_progress(module_lessons, completed_ids)),
        ))

    return schemas.CourseModulesOut(
        course_id=course.id,
        lesson_access_mode=course.lesson_access_mode,
        modules=modules_out,
        progress=CourseProgressOut.model_validate(aggregate_course_progress(lessons, completed_ids)),
        next_lesson_id=next_incomplete_lesson(lessons, completed_ids),
    )


@course_router.get("/{course_id}/lessons/{lesson_id}", response_model=schemas.LessonDetailOut)
async def get_lesson_detail(
    course_id: int,
    lesson_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Deliver a lesson's content. Locked lessons are refused with 403."""
    user_id = current_user.user_id
    course = await _get_member_course(db, course_id, current_user)

    lessons = await progress_store.fetch_lessons(db, course_id)
    positions = {lesson.id: i for i, lesson in enumerate(lessons)}
    if lesson_id not in positions:
        raise HTTPException(status_code=404, detail="Lesson not found in this course")

    completed_ids = await progress_store.fetch_completion_set(db, user_id, course_id)
    if not is_lesson_accessible(
        course.lesson_access_mode, lessons, completed_ids, lesson_id, is_privileged=current_user.is_admin
    ):
        logger.info(f"User {user_id} tried to open locked lesson {lesson_id} in course {course_id}")
        raise HTTPException(status_code=403, detail="Complete previous lessons to unlock this lesson")

    position = positions[lesson_id]
    lesson = lessons[position]
    lesson_progress = await progress_store.fetch_progress(db, user_id, lesson_id)
    return schemas.LessonDetailOut(
        id=lesson.id,
        module_id=lesson.module_id,
        title=lesson.title,
        type=lesson.type,
        order_index=lesson.order_index,
        duration_minutes=lesson.duration_minutes,
        video_url=lesson.video_url,
        content=lesson.content,
        completed=bool(lesson_progress and lesson_progress.completed),
        completed_at=lesson_progress.completed_at if lesson_progress else None,
        is_accessible=True,
        previous_lesson_id=lessons[position - 1].id if position > 0 else None,
        next_lesson_id=lessons[position + 1].id if position + 1 < len(lessons) else None,
    )
