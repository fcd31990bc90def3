from fastapi import FastAPI
from coursepath.config import setup_logging
from .api import routes_course

setup_logging()

app = FastAPI(title="Course Service")

app.include_router(routes_course.course_router, prefix="/courses")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8002)
