import httpx
from sqlalchemy import inspect

from coursepath.course_service.main import app as course_app
from coursepath.db.database import create_tables, engine
from coursepath.main import app
from coursepath.progress_service.main import app as progress_app


async def _get(application, path):
    transport = httpx.ASGITransport(app=application)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.get(path)


async def test_gateway_app_mounts_both_services() -> None:
    assert (await _get(app, "/api/health")).status_code == 200
    # protected routes answer 401 before touching the database
    assert (await _get(app, "/api/courses/1/modules")).status_code == 401
    assert (await _get(app, "/api/progress/lessons?course_id=1")).status_code == 401
    assert (await _get(app, "/api/progress/my-courses")).status_code == 401
    assert (await _get(app, "/api/unknown")).status_code == 404


async def test_standalone_service_apps() -> None:
    assert (await _get(course_app, "/courses/1/lessons/2")).status_code == 401
    assert (await _get(progress_app, "/progress/1/lessons/2/access")).status_code == 401
    assert (await _get(course_app, "/api/courses/1/modules")).status_code == 404


async def test_create_tables() -> None:
    await create_tables()
    async with engine.connect() as conn:
        tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
    assert {"courses", "course_modules", "lessons", "course_enrollments", "lesson_progress"} <= set(tables)
    await engine.dispose()
