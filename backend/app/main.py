import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.database import create_tables
from app.core.locks import close_redis
from app.api.v1.auth import router as auth_router
from app.api.v1.employees import router as employees_router
from app.api.v1.time_tracking import router as time_tracking_router
from app.api.v1.time_approvals import router as time_approvals_router
from app.services.errors import (
    BreakNotYetAllowed,
    ConcurrentModification,
    InvalidTransition,
    PersistenceFailure,
    TimeTrackingError,
    UnknownEmployee,
)

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Tabellen beim Start anlegen (SQLite / lokale Entwicklung)
    await create_tables()
    yield
    await close_redis()


app = FastAPI(
    title="Timeclock API",
    description="Arbeitszeiterfassung mit Pausen- und Arbeitszeit-Compliance",
    version="1.0.0",
    lifespan=lifespan,
    # Swagger UI nur in Entwicklung – in Produktion DEBUG=false setzen
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Reihenfolge: spezifischste Fehlerart zuerst
ERROR_STATUS = [
    (UnknownEmployee, 404),
    (InvalidTransition, 409),
    (BreakNotYetAllowed, 422),
    (ConcurrentModification, 409),
    (PersistenceFailure, 503),
]


def status_for(exc: TimeTrackingError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 400


@app.exception_handler(TimeTrackingError)
async def time_tracking_error_handler(request: Request, exc: TimeTrackingError):
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.code},
    )


API_PREFIX = "/api/v1"

app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(employees_router, prefix=API_PREFIX)
app.include_router(time_tracking_router, prefix=API_PREFIX)
app.include_router(time_approvals_router, prefix=API_PREFIX)


@app.get("/health")
async def health_check():
    return {"status": "ok", "service": "Timeclock API", "version": "1.0.0"}
