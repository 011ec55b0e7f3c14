# auth_backend/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from contextlib import asynccontextmanager
from typing import Optional
import logging

import uvicorn

# --- Import Core Backend Components ---
from auth_backend.config import Settings, get_settings
from auth_backend.errors import register_error_handlers
from auth_backend.routers import auth, google
from auth_backend.services.google_oauth import GoogleOAuthClient
from auth_backend.utils.database import Database
import auth_backend.models.user  # noqa: F401  registers the users table on Base

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("auth_backend")


@asynccontextmanager
async def lifespan(app: FastAPI):
    db: Database = app.state.db
    logger.info("Application Startup: Connecting to database...")
    try:
        await db.ping()
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        raise
    logger.info("Database connection successful.")
    await db.create_all()
    logger.info("Database table initialized.")
    yield
    await db.dispose()
    logger.info("Application Shutdown: Goodbye!")


def create_app(settings: Optional[Settings] = None, google_oauth: Optional[GoogleOAuthClient] = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(title="User Authentication API", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = Database(settings.database_url, pool_size=settings.db_pool_size)
    app.state.google_oauth = google_oauth or GoogleOAuthClient(settings)

    # single frontend origin, credentials allowed
    app.add_middleware(
        CORSMiddleware, allow_origins=[settings.frontend_url], allow_credentials=True,
        allow_methods=["*"], allow_headers=["*"],
    )
    register_error_handlers(app)

    app.include_router(auth.router)    # /api/register, /api/login, /api/user, ...
    app.include_router(google.router)  # /api/auth/google, /api/auth/google/callback

    @app.get("/", response_class=PlainTextResponse)
    def read_root():
        return "User Authentication API is running."

    return app


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
