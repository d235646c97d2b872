"""FastAPI web application for accountkeeper."""

import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from accountkeeper.api.account_models import ErrorResponse, HealthResponse, InfoResponse, LoginResponse
from accountkeeper.auth.dependencies import get_account_service, get_current_user, owner_json_body, require_owner
from accountkeeper.auth.jwt import TokenService
from accountkeeper.auth.passwords import PasswordHasher
from accountkeeper.config import Settings, load_settings
from accountkeeper.database.user_repository import UserRepository
from accountkeeper.errors import AccountServiceError, AuthenticationError
from accountkeeper.models.user import User
from accountkeeper.services.accounts import AccountService

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"

AUTH_ERRORS = {401: {"model": ErrorResponse}}
OWNER_ERRORS = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}

router = APIRouter()


@router.get("/", response_model=InfoResponse)
def root(request: Request):
    """Service information."""
    return InfoResponse(
        message="Welcome to the accountkeeper API",
        version=API_VERSION,
        environment=request.app.state.settings.environment,
    )


@router.get("/health", response_model=HealthResponse)
def health(request: Request, service: AccountService = Depends(get_account_service)):
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        uptime_seconds=round(time.monotonic() - request.app.state.started_at, 3),
        user_count=service.repository.count(),
    )


@router.post(
    "/accounts",
    response_model=User,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def create_account(
    payload: Any = Body(None),
    service: AccountService = Depends(get_account_service),
):
    """Register a new account. No authentication required."""
    return service.register(payload)


@router.get("/accounts", response_model=List[User], responses=AUTH_ERRORS)
def list_accounts(
    current_user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
):
    """List all accounts in registration order."""
    return service.list()


@router.get("/accounts/{user_id}", response_model=User, responses=OWNER_ERRORS)
def get_account(
    owner: User = Depends(require_owner),
    service: AccountService = Depends(get_account_service),
):
    """Get the caller's own account."""
    return service.get(owner.id)


@router.put(
    "/accounts/{user_id}",
    response_model=User,
    responses={**OWNER_ERRORS, 409: {"model": ErrorResponse}},
)
def update_account(
    owner: User = Depends(require_owner),
    payload: Any = Depends(owner_json_body),
    service: AccountService = Depends(get_account_service),
):
    """Update the caller's own account. Only supplied fields change."""
    return service.update(owner.id, payload)


@router.delete("/accounts/{user_id}", status_code=status.HTTP_204_NO_CONTENT, responses=OWNER_ERRORS)
def delete_account(
    owner: User = Depends(require_owner),
    service: AccountService = Depends(get_account_service),
):
    """Delete the caller's own account. Outstanding tokens stop working."""
    service.delete(owner.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/auth/login",
    response_model=LoginResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
def login(
    payload: Any = Body(None),
    service: AccountService = Depends(get_account_service),
):
    """Exchange email and password for a bearer token."""
    result = service.login(payload)
    return LoginResponse(user=result.user, token=result.token)


@router.get("/auth/whoami", response_model=User, responses=AUTH_ERRORS)
def whoami(current_user: User = Depends(get_current_user)):
    """The account behind the bearer token."""
    return current_user


def _error_response(exc: AccountServiceError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Translate errors into JSON bodies. Internal details stay in the server log."""

    @app.exception_handler(AccountServiceError)
    async def handle_service_error(request: Request, exc: AccountServiceError):
        logger.debug(f"{request.method} {request.url.path} -> {exc.status_code} {exc.error}")
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = []
        for error in exc.errors():
            loc = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
            errors.append(f"{loc}: {error.get('msg')}" if loc else "Request body must be valid JSON")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "ValidationError", "message": "Validation failed", "errors": errors},
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            content = {"error": "NotFound", "message": f"Cannot {request.method} {request.url.path}"}
        else:
            content = {"error": "HTTPError", "message": str(exc.detail)}
        return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "InternalServerError", "message": "Something went wrong!"},
        )


def create_app(settings: Optional[Settings] = None, repository: Optional[UserRepository] = None) -> FastAPI:
    """Build the application.

    Args:
        settings: Runtime settings; loaded from the environment when omitted
        repository: User repository; a fresh in-memory one when omitted

    Raises:
        ConfigurationError: If the environment does not provide a signing secret
    """
    settings = settings or load_settings()

    tokens = TokenService(
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expiration=timedelta(hours=settings.jwt_expiration_hours),
    )
    service = AccountService(
        repository=repository if repository is not None else UserRepository(),
        hasher=PasswordHasher(rounds=settings.password_hash_rounds),
        tokens=tokens,
    )

    app = FastAPI(
        title="accountkeeper API",
        description="User accounts with bearer-token authentication and owner-only access",
        version=API_VERSION,
    )
    app.state.settings = settings
    app.state.account_service = service
    app.state.started_at = time.monotonic()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"{request.method} {request.url.path} {response.status_code} {elapsed_ms:.1f}ms")
        return response

    register_exception_handlers(app)
    app.include_router(router)

    logger.info(
        f"accountkeeper configured: token expiry {settings.jwt_expiration_hours}h, "
        f"bcrypt rounds {settings.password_hash_rounds}, environment {settings.environment}"
    )
    return app
