"""
FastAPI application for the HelpHub auth service.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException

from api.auth import router as auth_router
from api.handlers import (
    auth_exception_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from api.users import router as users_router
from config import Config
from session_auth.exceptions import AuthException

logger = logging.getLogger(__name__)


def configure_logging(level: str = Config.LOG_LEVEL) -> None:
    """Attach one console handler to the root logger."""
    root = logging.getLogger()
    root.setLevel(level)
    if not root.handlers:
        console_handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s',
            datefmt='%H:%M:%S'
        )
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)


# Validate configuration on startup
Config.validate()
configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown."""
    logger.info("Starting auth service (environment=%s)", Config.ENVIRONMENT)
    yield
    logger.info("Shutting down auth service")


app = FastAPI(
    title="HelpHub Auth API",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["*"],
)

# Register global exception handlers (apply to all endpoints)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(AuthException, auth_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
app.include_router(users_router, prefix="/api/user", tags=["user"])


@app.get("/")
def health_check():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.main:app", host=Config.APP_HOST, port=Config.APP_PORT)
