from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import datetime

from coursepath.models.enums import LessonAccessMode, CourseStatus


class LessonProgressRequest(BaseModel):
    course_id: int
    lesson_id: int


class LessonProgressOut(BaseModel):
    lesson_id: int
    course_id: int
    completed: bool
    completed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CourseProgressOut(BaseModel):
    total: int
    completed: int
    percentage: int

    model_config = ConfigDict(from_attributes=True)


class LessonProgressUpdateOut(BaseModel):
    detail: str
    progress: LessonProgressOut
    course_progress: CourseProgressOut
    next_lesson_id: Optional[int] = None


class CourseProgressDetailOut(BaseModel):
    course_id: int
    lesson_access_mode: LessonAccessMode
    progress: CourseProgressOut
    next_lesson_id: Optional[int] = None
    accessible_lesson_ids: List[int] = []


class EnrolledCourseOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    status: CourseStatus
    lesson_access_mode: LessonAccessMode
    enrolled_at: Optional[datetime] = None
    total_lessons: int = 0
    completed_lessons: int = 0
    progress_percentage: int = 0
    next_lesson_id: Optional[int] = None


class LessonAccessOut(BaseModel):
    lesson_id: int
    is_accessible: bool
