from contextlib import asynccontextmanager
import os
import time
import uuid

import structlog
from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from bloodbank.database import Base, engine
from bloodbank.exceptions import BloodBankException
from bloodbank.logging_config import configure_logging
from bloodbank.routers import auth, inventory, public, users
from bloodbank.services.access_filter import authenticate_request

load_dotenv()
configure_logging()

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    logger.info("Starting blood bank service", version=app.version)
    Base.metadata.create_all(bind=engine)
    yield
    logger.info("Shutting down blood bank service")


app = FastAPI(
    title=os.getenv("APP_NAME", "Blood Bank Service"),
    version=os.getenv("APP_VERSION", "1.0.0"),
    description="Blood bank records: users, roles and blood inventory",
    lifespan=lifespan,
    # Every request passes through the access filter before its route runs
    dependencies=[Depends(authenticate_request)]
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    logger.info(
        "Request completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        process_time=round(process_time, 4)
    )
    response.headers["X-Process-Time"] = str(process_time)
    return response


@app.exception_handler(BloodBankException)
async def blood_bank_exception_handler(request: Request, exc: BloodBankException):
    logger.info(
        "Request rejected",
        method=request.method,
        path=request.url.path,
        error=type(exc).__name__,
        status_code=exc.status_code
    )
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error": type(exc).__name__},
        headers=headers
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    error_id = str(uuid.uuid4())[:8]
    logger.error(
        "Unhandled exception",
        error_id=error_id,
        method=request.method,
        path=request.url.path,
        error=f"{type(exc).__name__} - {exc}",
        exc_info=exc
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error occurred", "error_id": error_id}
    )


# CORS Configuration
origins = os.getenv("CORS_ORIGINS", "*").split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# Include routers
app.include_router(public.router)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(inventory.router)


def run():
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=port)


if __name__ == "__main__":
    run()
