# floortrack/main.py
import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from floortrack.core.config import settings
from floortrack.core.logging_config import setup_logging
from floortrack.core.middleware import RequestTimingMiddleware
from floortrack.db.session import init_db
from floortrack.api.v1.api import api_router

# Import the specific router from the auth endpoint file
from floortrack.api.v1.endpoints import auth

setup_logging(level=settings.LOG_LEVEL, json_output=settings.LOG_FORMAT == "json")
logger = logging.getLogger("floortrack.api")

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield

app = FastAPI(title="FloorTrack API", lifespan=lifespan)
app.add_middleware(RequestTimingMiddleware)

# --- Error envelope: {"message": ..., "errors"?: [...]} ---

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        content = {"message": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(part) for part in err["loc"] if part != "body"), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST,
                        content={"message": "Validation error", "errors": errors})

@app.exception_handler(IntegrityError)
async def integrity_exception_handler(request: Request, exc: IntegrityError):
    logger.warning("Integrity error on %s: %s", request.url.path, exc.orig)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": "Duplicate entry error"})

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    content = {"message": "Internal server error"}
    if settings.DEBUG:
        content["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)

# Include the main router for all routes prefixed with /api/v1
app.include_router(api_router, prefix="/api/v1")

# Include the auth router separately for the /auth prefix
app.include_router(auth.router, prefix="/auth", tags=["Auth"])

@app.get("/")
def read_root():
    return {"message": "Welcome to the FloorTrack API"}

@app.get("/health")
def health():
    return {"status": "ok"}
