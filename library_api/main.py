import logging
import time
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from library_api import models  # noqa: F401  registers tables on Base.metadata
from library_api import schemas
from library_api.config import settings
from library_api.database import Base, SessionLocal, engine, get_db
from library_api.exceptions import AuthenticationError, NotFoundError, ValidationError
from library_api.logging_config import setup_logging
from library_api.rate_limiter import limiter
from library_api.routers import auth, authors, books, categories, publishers, reviews
from library_api.seed import seed_database

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

GENERIC_ERROR = "An unexpected error occurred."


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up library-api...")
    Base.metadata.create_all(bind=engine)
    if settings.SEED_DATA:
        with SessionLocal() as db:
            seed_database(db)
    yield
    logger.info("Shutting down library-api...")


app = FastAPI(
    title="Library Catalog API",
    description="REST API for managing books, authors, publishers, categories, and reviews",
    version="1.0.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": exc.detail})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": exc.detail})


@app.exception_handler(AuthenticationError)
async def authentication_error_handler(request: Request, exc: AuthenticationError):
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": exc.detail},
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


@app.middleware("http")
async def catch_unhandled_exceptions(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": GENERIC_ERROR},
        )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start) * 1000
    logger.info(
        "%s %s -> %s (%.2f ms) ip=%s",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
        request.client.host if request.client else "unknown",
    )
    return response


# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allow_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Health check endpoint
@app.get("/health", tags=["System"], response_model=schemas.HealthReport)
def health_check(response: Response, db: Session = Depends(get_db)):
    started = time.perf_counter()
    checks = []

    try:
        db.execute(text("SELECT 1"))
        checks.append(schemas.HealthCheckEntry(name="database", status="Healthy"))
    except SQLAlchemyError as e:
        logger.error(f"DB health check failed: {e}")
        checks.append(
            schemas.HealthCheckEntry(name="database", status="Unhealthy", description="Database unreachable")
        )
    checks.append(schemas.HealthCheckEntry(name="self", status="Healthy"))

    overall = "Healthy" if all(check.status == "Healthy" for check in checks) else "Unhealthy"
    if overall != "Healthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return schemas.HealthReport(
        status=overall,
        checks=checks,
        totalDuration=str(timedelta(seconds=time.perf_counter() - started)),
    )


app.include_router(auth.router)
app.include_router(books.router)
app.include_router(authors.router)
app.include_router(categories.router)
app.include_router(publishers.router)
app.include_router(reviews.router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
