"""Volunteer login and session endpoints."""
import logging
from datetime import date

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from volunteer_portal.auth.deps import get_app_settings, get_current_session, get_session_store
from volunteer_portal.auth.session_store import SessionData, SessionStore
from volunteer_portal.config import Settings
from volunteer_portal.database import get_db
from volunteer_portal.errors import LoginError, MethodNotAllowedError, StorageError
from volunteer_portal.services import login as login_service
from volunteer_portal.services.account_repository import VolunteerRepository

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["volunteer"])


def get_volunteer_repo(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> VolunteerRepository:
    return VolunteerRepository(db, timeout=settings.STORAGE_TIMEOUT)


def get_today() -> date:
    return date.today()


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"success": False, "message": message}, status_code=status_code)


def _form_text(form, key: str) -> str | None:
    value = form.get(key)
    return value if isinstance(value, str) else None


# Every method is routed here so non-POST requests still get the JSON body
@router.api_route("/vol-login", methods=["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"])
async def vol_login(
    request: Request,
    repo: VolunteerRepository = Depends(get_volunteer_repo),
    sessions: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_app_settings),
    today: date = Depends(get_today),
):
    """Authenticate a volunteer from ``email`` and ``password_hash`` form fields."""
    try:
        if request.method != "POST":
            raise MethodNotAllowedError()
        form = await request.form()
        result = await login_service.authenticate(
            repo,
            sessions,
            _form_text(form, "email"),
            _form_text(form, "password_hash"),
            today=today,
            redirect=settings.DASHBOARD_REDIRECT,
        )
    except StorageError as exc:
        log.error("Login database error: %s", exc)
        return _failure(exc.status_code, exc.client_message)
    except LoginError as exc:
        return _failure(exc.status_code, exc.client_message)
    except Exception:
        log.exception("Login error")
        return _failure(500, StorageError.public_message)

    response = JSONResponse({
        "success": True,
        "message": result.message,
        "redirect": result.redirect,
        "user": result.user.model_dump(),
    })
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        result.session_token,
        max_age=settings.SESSION_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )
    return response


@router.get("/vol-session")
async def vol_session(session: SessionData | None = Depends(get_current_session)):
    """Return the logged-in volunteer, or 401 when there is no live session."""
    if session is None or not session.logged_in:
        return _failure(401, "Not logged in.")
    return {
        "success": True,
        "user": {"id": session.user_id, "email": session.email, "name": session.name},
    }
