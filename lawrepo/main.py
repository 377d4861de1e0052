# lawrepo/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lawrepo.api.v1.endpoints import (
    articles,
    assignments,
    auth,
    courses,
    database,
    events,
    health,
    mux_uploads,
    mux_webhook,
    thumbnails,
    uploads,
    users,
    videos,
)
from lawrepo.core.config import settings
from lawrepo.core.errors import register_exception_handlers
from lawrepo.core.logging_config import setup_logging
from lawrepo.db.base import Base
from lawrepo.db.session import engine

setup_logging(settings.LOG_LEVEL)

app = FastAPI(title=settings.PROJECT_NAME)

register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup():
    Base.metadata.create_all(bind=engine)


# fixed paths under /videos must be registered before /videos/{video_id}
app.include_router(uploads.router, prefix="/api")
app.include_router(thumbnails.router, prefix="/api")
app.include_router(videos.router, prefix="/api")
app.include_router(mux_webhook.router, prefix="/api")
app.include_router(mux_uploads.router, prefix="/api")
app.include_router(database.router, prefix="/api")
app.include_router(auth.router, prefix="/api")
app.include_router(users.router, prefix="/api")
app.include_router(courses.router, prefix="/api")
app.include_router(assignments.router, prefix="/api")
app.include_router(articles.router, prefix="/api")
app.include_router(events.router, prefix="/api")
app.include_router(health.router, prefix="/health")
