"""Session authentication middleware - resolves the owner for each request."""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from api.base import ErrorCodes, error_response
from auth.exceptions import InvalidTokenError, SessionExpiredError
from auth.session import SessionManager
from utils.user_context import clear_current_owner_id, set_current_owner_id


class AuthMiddleware(BaseHTTPMiddleware):
    """
    Validates the session token and binds the owner to the request.

    The token is read from the 'session_token' cookie, else from an
    'Authorization: Bearer' header. On success the owner id is put in
    request.state and the owner context for the duration of the request.
    Public paths skip authentication.
    """

    PUBLIC_PATHS = ("/health", "/docs", "/openapi.json")

    def __init__(self, app, session_manager: SessionManager):
        super().__init__(app)
        self._session_manager = session_manager

    def _is_public_path(self, path: str) -> bool:
        return any(path == p or path.startswith(p + "/") for p in self.PUBLIC_PATHS)

    @staticmethod
    def _extract_token(request: Request) -> str | None:
        token = request.cookies.get("session_token")
        if token:
            return token

        scheme, _, credentials = request.headers.get("Authorization", "").partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
        return None

    @staticmethod
    def _unauthorized(request: Request, code: str, message: str) -> JSONResponse:
        request_id = getattr(request.state, "request_id", None)
        return JSONResponse(
            status_code=401,
            content=error_response(code, message, request_id=request_id).model_dump(mode="json"),
        )

    async def dispatch(self, request: Request, call_next):
        if self._is_public_path(request.url.path):
            return await call_next(request)

        token = self._extract_token(request)
        if not token:
            return self._unauthorized(request, ErrorCodes.NOT_AUTHENTICATED, "Authentication required")

        try:
            session = self._session_manager.validate_session(token)
        except SessionExpiredError:
            return self._unauthorized(request, ErrorCodes.SESSION_EXPIRED, "Session has expired")
        except InvalidTokenError:
            return self._unauthorized(request, ErrorCodes.INVALID_TOKEN, "Invalid session token")

        set_current_owner_id(session.owner_id)
        request.state.owner_id = session.owner_id
        request.state.session = session
        try:
            return await call_next(request)
        finally:
            clear_current_owner_id()
