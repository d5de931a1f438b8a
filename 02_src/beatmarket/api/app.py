"""FastAPI application setup."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from ..app import Application
from .errors import register_exception_handlers
from .routes import auth, beats, cart, chat, dashboard, social

# Global application instance
_app: Application | None = None


def get_app() -> Application:
    """Get the global application instance."""
    global _app
    if not _app:
        _app = Application()
    return _app


def set_app(application: Application | None) -> None:
    """Replace the global application instance."""
    global _app
    _app = application


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan."""
    application = get_app()
    await application.start()
    yield
    await application.stop()


def create_fastapi_app(application: Application | None = None) -> FastAPI:
    """Create and configure FastAPI application."""
    if application is not None:
        set_app(application)

    fastapi_app = FastAPI(
        title="Beat Market API",
        description="Marketplace for beats: catalog, licensing, earnings and chat",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Enable CORS
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:5174"],  # Vite default
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(fastapi_app)

    # Include routers
    application = get_app()
    fastapi_app.include_router(auth.create_auth_router(application))
    fastapi_app.include_router(beats.create_beats_router(application))
    fastapi_app.include_router(cart.create_cart_router(application))
    fastapi_app.include_router(dashboard.create_dashboard_router(application))
    fastapi_app.include_router(social.create_social_router(application))
    fastapi_app.include_router(chat.create_chat_router(application))

    @fastapi_app.get("/storage/{bucket}/{path:path}", tags=["storage"])
    async def download_blob(bucket: str, path: str) -> Response:
        """Serve a stored file by its public URL."""
        data = await application.blobs.download(bucket, path)
        return Response(content=data, media_type="application/octet-stream")

    return fastapi_app
