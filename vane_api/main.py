from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from vane_api.context import AppContext
from vane_api.errors import CsvImportError, VaneError
from vane_api.routes import data_import, oauth, vanes
from vane_api.services.github_oauth import GitHubOAuth
from vane_api.services.habits import HabitService
from vane_api.services.users import UserService
from vane_api.session import build_fernet
from vane_api.settings import Settings, get_settings
from vane_api.store import DocumentStore, SanityClient

logger = logging.getLogger("vane_api")


def _format_validation_error(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(messages) or "Invalid request"


def build_context(
    settings: Settings,
    store: DocumentStore | None = None,
    github: GitHubOAuth | None = None,
) -> AppContext:
    if store is None:
        store = SanityClient(
            project_id=settings.sanity_project_id,
            dataset=settings.environment,
            token=settings.sanity_token,
            api_version=settings.sanity_api_version,
            timeout=settings.store_timeout_seconds,
        )
    if github is None:
        github = GitHubOAuth(
            client_id=settings.github_client_id,
            client_secret=settings.github_client_secret,
            redirect_uri=settings.oauth_callback_url,
        )
    return AppContext(
        settings=settings,
        store=store,
        habits=HabitService(store),
        users=UserService(store),
        oauth=github,
        fernet=build_fernet(settings.encryption_key),
    )


def create_app(
    settings: Settings | None = None,
    store: DocumentStore | None = None,
    github: GitHubOAuth | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    context = build_context(settings, store=store, github=github)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await context.aclose()

    app = FastAPI(title="Vane API", version="0.1.0", lifespan=lifespan)
    app.state.context = context

    app.add_middleware(SessionMiddleware, secret_key=settings.session_secret, https_only=False)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(vanes.router)
    app.include_router(data_import.router)
    app.include_router(oauth.router)

    @app.exception_handler(VaneError)
    async def _vane_error_handler(request: Request, exc: VaneError):
        if isinstance(exc, CsvImportError):
            return PlainTextResponse(exc.message, status_code=exc.status_code)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def _request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _format_validation_error(exc)})

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(status_code=500, content={"detail": "Internal error"})

    @app.get("/health")
    async def health():
        return {"ok": True}

    return app


if __name__ == "__main__":
    import uvicorn

    app_settings = get_settings()
    uvicorn.run(create_app(app_settings), host="0.0.0.0", port=app_settings.port)
