"""HTTP routes for the current session."""

from fastapi import APIRouter, Request, Response

from api.base import success_response
from auth.session import SessionManager


def create_auth_router(session_manager: SessionManager) -> APIRouter:
    """Create auth router with injected session manager.

    Sessions are issued by the login front end; these routes only read
    and revoke the one the middleware already validated.
    """
    router = APIRouter(tags=["auth"])

    @router.get("/me")
    async def get_current_owner(request: Request):
        session = request.state.session
        return success_response(
            {
                "owner_id": session.owner_id,
                "expires_at": session.expires_at.isoformat(),
            },
            getattr(request.state, "request_id", None),
        ).model_dump(mode="json")

    @router.post("/logout")
    async def logout(request: Request, response: Response):
        """Revoke the session and clear the cookie."""
        session_manager.revoke_session(request.state.session.token)
        response.delete_cookie(key="session_token")
        return success_response(
            {"message": "Logged out successfully"},
            getattr(request.state, "request_id", None),
        ).model_dump(mode="json")

    return router
