from fastapi import Depends, Request

from volunteer_portal.auth.session_store import SessionData, SessionStore
from volunteer_portal.config import Settings


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_current_session(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    store: SessionStore = Depends(get_session_store),
) -> SessionData | None:
    """Resolve the session cookie, or None when absent or no longer valid."""
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        return None
    return store.lookup(token)
