import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError, InterfaceError

from app.core import config
from app.core.errors import PortalError, ServiceUnavailableError
from app.core.logging_config import setup_logging, sanitize_log_data

# ✅ Import All API Routes
from app.api.routes import health, drives, application, hod, students, tpo

logger = logging.getLogger(__name__)


# ============================================
# ✅ FASTAPI APP INIT
# ============================================

app = FastAPI(title="Placement Portal API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)


# ============================================
# ✅ ERROR RESPONSES
# ============================================

@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.error_code}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})


@app.exception_handler(OperationalError)
@app.exception_handler(InterfaceError)
async def database_unavailable_handler(request: Request, exc: Exception):
    # Reads outside transaction() land here
    logger.error(f"{request.method} {request.url.path} database error: {exc}")
    error = ServiceUnavailableError("The placement database is currently unavailable")
    return JSONResponse(status_code=error.status_code, content={"detail": error.to_detail()})


# ============================================
# ✅ REGISTER ALL ROUTERS
# ============================================

app.include_router(health.router)
app.include_router(drives.router)
app.include_router(application.router)
app.include_router(hod.router)
app.include_router(students.router)
app.include_router(tpo.router)


# ============================================
# ✅ STARTUP
# ============================================

@app.on_event("startup")
def startup_event():
    setup_logging(log_level=config.LOG_LEVEL, log_dir=config.LOG_DIR)
    logger.info("Starting Placement Portal API")
    settings = sanitize_log_data({
        "database_url": config.DATABASE_URL,
        "run_migrations": config.RUN_MIGRATIONS,
        "require_profile_approval": config.REQUIRE_PROFILE_APPROVAL,
        "smtp_host": config.SMTP_HOST,
        "smtp_password": config.SMTP_PASSWORD,
        "cors_origins": config.CORS_ORIGINS,
    })
    logger.info(f"Configuration: {settings}")

    if config.RUN_MIGRATIONS:
        from app.db.migrate import run_migrations
        run_migrations()
    else:
        from app.db.init_db import init_db
        init_db()

    if config.CLOSE_EXPIRED_DRIVES_ON_STARTUP:
        from app.db.session import SessionLocal
        from app.services.drive_service import close_expired_drives
        db = SessionLocal()
        try:
            close_expired_drives(db)
        finally:
            db.close()


@app.get("/")
def root():
    return {"status": "Placement Portal API running"}
