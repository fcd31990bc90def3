from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import datetime

from coursepath.models.enums import LessonAccessMode, LessonType, CourseStatus
from coursepath.progress_service.schemas import CourseProgressOut


class CourseOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    price: Optional[float] = None
    status: CourseStatus
    lesson_access_mode: LessonAccessMode
    created_at: Optional[datetime] = None
    lesson_count: int = 0
    is_enrolled: bool = False

    model_config = ConfigDict(from_attributes=True)


class LessonWithProgressOut(BaseModel):
    id: int
    module_id: int
    title: str
    type: LessonType
    order_index: int
    duration_minutes: Optional[int] = None
    video_url: Optional[str] = None
    completed: bool = False
    completed_at: Optional[datetime] = None
    is_accessible: bool = False


class ModuleProgressOut(BaseModel):
    lessons_count: int
    completed_lessons_count: int
    percentage: int

    model_config = ConfigDict(from_attributes=True)


class ModuleWithLessonsOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    order_index: int
    lessons: List[LessonWithProgressOut] = []  # lessons of this module in course order
    progress: ModuleProgressOut


class CourseModulesOut(BaseModel):
    course_id: int
    lesson_access_mode: LessonAccessMode
    modules: List[ModuleWithLessonsOut] = []
    progress: CourseProgressOut
    next_lesson_id: Optional[int] = None


class LessonDetailOut(LessonWithProgressOut):
    content: Optional[str] = None
    previous_lesson_id: Optional[int] = None
    next_lesson_id: Optional[int] = None


class PreviewLessonOut(BaseModel):
    id: int
    title: str
    type: LessonType
    order_index: int

    model_config = ConfigDict(from_attributes=True)


class PreviewModuleOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    order_index: int
    lessons: List[PreviewLessonOut] = []


class PreviewStatsOut(BaseModel):
    total_modules: int
    total_lessons: int
    total_quizzes: int


class CoursePreviewOut(BaseModel):
    course_id: int
    modules: List[PreviewModuleOut] = []
    stats: PreviewStatsOut


class EnrollRequest(BaseModel):
    course_id: int


class EnrollOut(BaseModel):
    detail: str
    course_id: int
    enrolled_at: Optional[datetime] = None
