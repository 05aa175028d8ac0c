"""FastAPI application factory."""

import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from ..config import Config
from ..database.message_repository import MessageRepository
from ..database.user_repository import UserRepository
from ..exceptions import AuthenticationError, WebmailError
from ..mail.service import MessageService
from ..users import UserService
from .api import auth_router, messages_router, users_router
from .auth import SessionManager
from .routes import router

logger = logging.getLogger(__name__)


def _is_api(request: Request) -> bool:
    return request.url.path.startswith("/api/")


def register_exception_handlers(app: FastAPI) -> None:
    """Map service errors to JSON for the API and to pages for the UI."""

    @app.exception_handler(WebmailError)
    async def webmail_error_handler(request: Request, exc: WebmailError):
        if _is_api(request):
            content = {"detail": exc.message}
            if exc.errors:
                content["errors"] = exc.errors
            return JSONResponse(content, status_code=exc.status_code)

        if isinstance(exc, AuthenticationError):
            return RedirectResponse("/login", status_code=303)
        return request.app.state.templates.TemplateResponse(
            request,
            "error.html",
            {"status_code": exc.status_code, "message": exc.message},
            status_code=exc.status_code,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in error["loc"][1:]) or str(error["loc"][0]),
                "message": error["msg"],
            }
            for error in exc.errors()
        ]
        return JSONResponse({"detail": "Validation failed", "errors": errors}, status_code=400)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse({"detail": "Server error"}, status_code=500)


def create_app(
    config: Config,
    message_repo: MessageRepository,
    user_repo: UserRepository,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Webmail",
        description="Webmail for registered users of a single system",
        version="1.0.0",
    )

    # Setup templates
    templates_dir = Path(__file__).parent.parent.parent / "templates"
    templates = Jinja2Templates(directory=str(templates_dir))

    # Setup session manager
    session_manager = SessionManager(
        secret=config.web.session_secret,
        cookie_name=config.web.session_name,
        max_age=config.web.session_max_age,
    )

    # Store dependencies in app state
    app.state.config = config
    app.state.message_repo = message_repo
    app.state.user_repo = user_repo
    app.state.message_service = MessageService(message_repo, user_repo)
    app.state.user_service = UserService(user_repo)
    app.state.templates = templates
    app.state.session_manager = session_manager

    register_exception_handlers(app)

    # Include routes
    app.include_router(auth_router)
    app.include_router(messages_router)
    app.include_router(users_router)
    app.include_router(router)

    return app
