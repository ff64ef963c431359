from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import select

from attendance_api.api.routes import attendance, auth, companies, dashboard, face_descriptors, health, shifts, users
from attendance_api.core.config import get_settings
from attendance_api.core.exceptions import AttendanceError
from attendance_api.core.logger import configure_logging
from attendance_api.core.security import hash_password
from attendance_api.db.base import Base
from attendance_api.db.models import ROLE_SUPERADMIN, User
from attendance_api.db.session import SessionLocal, engine

settings = get_settings()
configure_logging(settings.log_level, settings.log_dir)
logger = logging.getLogger("attendance.backend")


def bootstrap_defaults() -> None:
    Base.metadata.create_all(bind=engine)
    if not (settings.bootstrap_superadmin_email and settings.bootstrap_superadmin_password):
        return
    with SessionLocal() as db:
        existing = db.scalar(select(User).where(User.email == settings.bootstrap_superadmin_email))
        if existing is None:
            db.add(
                User(
                    name="Superadmin",
                    email=settings.bootstrap_superadmin_email,
                    password_hash=hash_password(settings.bootstrap_superadmin_password),
                    role=ROLE_SUPERADMIN,
                )
            )
            db.commit()
            logger.info("Created bootstrap superadmin '%s'.", settings.bootstrap_superadmin_email)


@asynccontextmanager
async def lifespan(app: FastAPI):
    bootstrap_defaults()
    yield


def _field_errors(exc: RequestValidationError) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(location) or "body"
        errors.setdefault(field, []).append(error.get("msg", "Invalid value"))
    return errors


async def attendance_error_handler(request: Request, exc: AttendanceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.error or exc.message)
    body = {"success": False, "message": exc.message}
    if exc.error:
        body["error"] = exc.error
    return JSONResponse(status_code=exc.status_code, content=body)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=jsonable_encoder({"success": False, "message": "Validation failed", "errors": _field_errors(exc)}),
    )


app = FastAPI(title=settings.app_name, version="1.0.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_exception_handler(AttendanceError, attendance_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)

app.include_router(health.router, prefix=settings.api_prefix)
app.include_router(auth.router, prefix=settings.api_prefix)
app.include_router(companies.router, prefix=settings.api_prefix)
app.include_router(users.router, prefix=settings.api_prefix)
app.include_router(shifts.router, prefix=settings.api_prefix)
app.include_router(face_descriptors.router, prefix=settings.api_prefix)
app.include_router(attendance.router, prefix=settings.api_prefix)
app.include_router(dashboard.router, prefix=settings.api_prefix)
