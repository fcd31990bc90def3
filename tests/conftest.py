import os

# must be set before coursepath.config is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ACTIVITY_SERVICE_URL"] = ""

import httpx
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from coursepath.db import models
from coursepath.db.database import Base, get_async_session
from coursepath.main import app
from coursepath.security import create_access_token


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_async_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_get_async_session
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def make_course(session_factory):
    """
    Create a course whose lessons are numbered course-wide across modules.

    ``module_sizes=(2, 2)`` gives two modules holding lessons with order_index
    0, 1 and 2, 3. Returns (course_id, [module ids], [lesson ids in order]).
    """
    async def _make_course(
        lesson_access_mode="sequential",
        module_sizes=(3,),
        status="published",
        price=0,
        title="Python basics",
    ):
        async with session_factory() as session:
            course = models.Course(
                title=title,
                status=status,
                price=price,
                lesson_access_mode=lesson_access_mode,
            )
            session.add(course)
            await session.flush()

            module_ids, lesson_ids = [], []
            order_index = 0
            for module_position, size in enumerate(module_sizes):
                module = models.CourseModule(
                    course_id=course.id, title=f"Module {module_position + 1}", order_index=module_position
                )
                session.add(module)
                await session.flush()
                module_ids.append(module.id)
                for _ in range(size):
                    lesson = models.Lesson(
                        course_id=course.id,
                        module_id=module.id,
                        title=f"Lesson {order_index + 1}",
                        type="content",
                        order_index=order_index,
                    )
                    session.add(lesson)
                    await session.flush()
                    lesson_ids.append(lesson.id)
                    order_index += 1
            course_id = course.id
            await session.commit()
        return course_id, module_ids, lesson_ids

    return _make_course


@pytest.fixture
def enroll(session_factory):
    async def _enroll(user_id, course_id):
        async with session_factory() as session:
            session.add(models.CourseEnrollment(user_id=user_id, course_id=course_id))
            await session.commit()

    return _enroll


def auth_header(user_id, role="student"):
    token = create_access_token({"user_id": user_id, "role": role})
    return {"Authorization": f"Bearer {token}"}
