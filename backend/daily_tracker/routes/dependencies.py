"""
FastAPI dependencies that pull shared components off `app.state`.

main.create_app() stores: settings, store, sessions, broadcaster,
auth_service and resource_services.
"""

from typing import Callable, Optional

from fastapi import Request

from daily_tracker.config import Settings
from daily_tracker.exceptions import AuthenticationError
from daily_tracker.schemas.records import ResourceKind
from daily_tracker.services.auth_service import AuthService
from daily_tracker.services.resource_service import ResourceService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_session_token(request: Request) -> Optional[str]:
    return request.cookies.get(request.app.state.settings.session_cookie_name)


async def require_user_id(request: Request) -> str:
    """Resolve the session cookie to a user id, or fail with 401."""
    user_id = await request.app.state.sessions.get_user_id(get_session_token(request))
    if user_id is None:
        raise AuthenticationError()
    return user_id


def resource_service(kind: ResourceKind) -> Callable[[Request], ResourceService]:
    def _get(request: Request) -> ResourceService:
        return request.app.state.resource_services[kind]

    return _get
