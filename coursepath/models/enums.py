import enum


class LessonAccessMode(str, enum.Enum):
    SEQUENTIAL = "sequential"
    ALL_ACCESS = "all_access"


class LessonType(str, enum.Enum):
    CONTENT = "content"
    QUIZ = "quiz"


class CourseStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


ADMIN_ROLE = "admin"
