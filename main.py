from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ucms import __version__
from ucms.config import settings
from ucms.database import engine, Base, SessionLocal
from ucms.errors import register_exception_handlers
from ucms.logging_config import setup_logging, get_logger
from ucms.seeders import seed_database

from ucms.modules.auth.routes import router as auth_router
from ucms.modules.courses.routes import router as courses_router
from ucms.modules.enrollments.routes import router as enrollments_router
from ucms.modules.professor.routes import router as professor_router
from ucms.modules.admin.routes import router as admin_router

setup_logging(settings.log_level)
logger = get_logger(__name__)

# Create the tables
Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s %s", settings.app_name, __version__)
    if settings.seed_on_startup:
        db = SessionLocal()
        try:
            seed_database(db)
        finally:
            db.close()
    yield
    logger.info("Shutting down %s", settings.app_name)


app = FastAPI(
    title="University Course Management System",
    description="REST API for courses, enrollments and grades with student, professor and admin roles",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(auth_router)
app.include_router(courses_router)
app.include_router(enrollments_router)
app.include_router(professor_router)
app.include_router(admin_router)


@app.get("/")
def read_root():
    return {
        "message": "University Course Management System API",
        "version": __version__,
        "docs": "/docs"
    }


@app.get("/health")
def health_check():
    return {"status": "ok", "message": "API is running"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8080, reload=settings.debug)
