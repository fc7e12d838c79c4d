"""
FastAPI entrypoint for the Expense Tracker backend application.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from expense_tracker.core.config import settings
from expense_tracker.core.exceptions import AppError, Unauthenticated
from expense_tracker.core.utils import format_error
from expense_tracker.db.session import init_db
from expense_tracker.api.router import api_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info(f"{settings.APP_NAME} API started")
    yield


app = FastAPI(
    title="Expense Tracker API",
    description="Backend API for personal income and expense tracking",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Map business-rule failures to their status code."""
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(status_code=exc.status_code, content=format_error(exc.message), headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report malformed input as 400 like the other validation failures."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=format_error("Invalid request", jsonable_encoder(exc.errors())),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    """
    Surface unclassified failures as a generic 500 with the underlying message.
    Starlette re-raises the exception after this response, so the server logs the traceback.
    """
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=format_error(str(exc)))


# Include API routes
app.include_router(api_router, prefix="/api")


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"message": "Expense Tracker API is running"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
