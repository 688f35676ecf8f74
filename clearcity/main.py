# File: clearcity/main.py
# Project: clearcity-api

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from slowapi import _rate_limit_exceeded_handler

from clearcity.core.config import cors_origins_list, settings
from clearcity.core.errors import install_error_handlers
from clearcity.core.ratelimit import limiter
from clearcity.db.session import engine
from clearcity.routers import auth, reports, users, admin
from clearcity.services.storage import PROFILES, REPORTS

logger = logging.getLogger("clearcity")

@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    for folder in (REPORTS, PROFILES):
        (Path(settings.upload_dir) / folder).mkdir(parents=True, exist_ok=True)
    logger.info("ClearCity API started")
    yield
    engine.dispose()
    logger.info("Database pool closed")

app = FastAPI(title="ClearCity API", lifespan=lifespan)
app.state.limiter = limiter
install_error_handlers(app)
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins_list(),
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/api/health")
def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

app.include_router(auth.router, prefix="/api")
app.include_router(reports.router, prefix="/api")
app.include_router(users.router, prefix="/api")
app.include_router(admin.router, prefix="/api")

app.mount("/uploads", StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")
