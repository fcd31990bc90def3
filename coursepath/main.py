from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from coursepath.config import setup_logging, get_cors_settings
from coursepath.course_service.api import routes_course
from coursepath.progress_service.api import routes_progress


setup_logging()

app = FastAPI(title="coursepath")

# CORS
cors_config = get_cors_settings()
app.add_middleware(CORSMiddleware, **cors_config)

# Роуты
app.include_router(routes_course.course_router, prefix="/api/courses")
app.include_router(routes_progress.router, prefix="/api/progress")


@app.get("/api/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
