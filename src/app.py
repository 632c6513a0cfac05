"""Main FastAPI application module.

This module initializes the FastAPI application, opens the room store for
the lifetime of the process, and registers all route handlers.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.logging_config import setup_logging
from config import (
    CORS_ALLOWED_ORIGINS,
    API_HOST,
    API_PORT,
)
from core.database import Store
from api.routes import rooms, vip

# Setup logging
setup_logging()


def create_app(store: Optional[Store] = None) -> FastAPI:
    """Build the application.

    Args:
        store: Store to serve from. A default one (configured from the
            environment) is created when omitted. It is opened at startup
            and closed at shutdown either way.

    Returns:
        The FastAPI application.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.store.open()
        try:
            yield
        finally:
            app.state.store.close()

    application = FastAPI(
        title="Room Access API",
        description="Rooms, VIP codes and VIP users for the streaming platform.",
        version="1.0.0",
        lifespan=lifespan,
    )
    application.state.store = store or Store()

    # Configure CORS middleware
    application.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register route handlers
    application.include_router(rooms.router)
    application.include_router(vip.router)

    @application.get("/api/health", summary="Health check", tags=["Health"])
    def health() -> dict:
        """Health check endpoint.

        Returns:
            Dictionary with status "ok".
        """
        return {"status": "ok"}

    return application


app = create_app()


# --- Startup code for direct execution ---
if __name__ == "__main__":
    import uvicorn

    print(f"🌐 Server: http://{API_HOST}:{API_PORT}")
    print(f"📚 API docs: http://{API_HOST}:{API_PORT}/docs")
    uvicorn.run("app:app", host=API_HOST, port=API_PORT)
