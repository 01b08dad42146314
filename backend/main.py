from contextlib import asynccontextmanager
import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlmodel import Session, text

from database import create_db, engine
from models import utc_now
from routers.beds import router as beds_router
from routers.residents import router as residents_router
from routers.transfers import router as transfers_router
from services.errors import BedAllocationError, ErrorKind

logger = logging.getLogger("bedwise")
logger.setLevel(os.getenv("BEDWISE_LOG_LEVEL", "INFO").upper())


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db()
    yield


app = FastAPI(title="Bedwise", version="0.1.0", lifespan=lifespan)


@app.exception_handler(BedAllocationError)
async def bed_allocation_error_handler(request: Request, exc: BedAllocationError):
    if exc.kind == ErrorKind.INTEGRITY:
        logger.critical("Integrity failure on %s %s: %s", request.method, request.url.path, exc.message)
    elif exc.kind == ErrorKind.PERSISTENCE:
        logger.error("Persistence failure on %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled server error for %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.middleware("http")
async def no_cache_api_responses(request: Request, call_next):
    response = await call_next(request)
    if request.url.path.startswith(("/beds", "/residents", "/transfers", "/api/v1/")):
        response.headers["Cache-Control"] = "no-store, max-age=0"
        response.headers["Pragma"] = "no-cache"
        response.headers["Expires"] = "0"
    return response


app.include_router(beds_router)
app.include_router(residents_router)
app.include_router(transfers_router)
app.include_router(beds_router, prefix="/api/v1")
app.include_router(residents_router, prefix="/api/v1")
app.include_router(transfers_router, prefix="/api/v1")


@app.get("/health")
def health():
    try:
        with Session(engine) as session:
            session.exec(text("SELECT 1"))
        return {
            "status": "ok",
            "database": "connected",
            "timestamp": utc_now().isoformat(),
        }
    except Exception:
        logger.exception("Health check failed")
        return JSONResponse(status_code=500, content={"status": "error"})
