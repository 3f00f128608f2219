# sopopped/routers/auth.py
from typing import Any

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlmodel import Session

from sopopped.core.auth import get_current_session
from sopopped.core.config import get_settings
from sopopped.core.errors import BadRequest, StorefrontError, field_errors
from sopopped.core.http import flow_error, flow_redirect, is_ajax_request, read_payload
from sopopped.core.rate_limit import rate_limit
from sopopped.database import get_session
from sopopped.repositories.session_repo import SessionRepository
from sopopped.repositories.user_repo import UserRepository
from sopopped.schemas.session import AuthSession, SessionInfo
from sopopped.schemas.user import LoginForm, SignupForm, UserSummary, is_valid_email, normalize_email
from sopopped.services.auth_service import AuthService, LoginResult

settings = get_settings()

router = APIRouter(tags=["Auth"])

service = AuthService(UserRepository(), SessionRepository())

LOGOUT_MESSAGE = "You have been logged out successfully."
SIGNUP_MESSAGE = "Account created successfully! You can now log in."


def _set_session_cookie(response: Response, result: LoginResult) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=result.token,
        max_age=settings.SESSION_TTL_MINUTES * 60,
        expires=result.expires_at,
        httponly=True,
        samesite="lax",
        secure=settings.SESSION_COOKIE_SECURE,
        path="/",
    )


def _form_messages(exc: ValidationError) -> list[str]:
    return list(field_errors(exc).values())


# -------- Session --------


@router.get("/session", response_model=SessionInfo)
def session_info(auth: AuthSession | None = Depends(get_current_session)):
    """
    Current login state, polled by the frontend after login.

    200 {"logged_in": true, "user_id", "username"} when logged in,
    401 {"logged_in": false} otherwise.
    """
    if auth is None:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content=SessionInfo(logged_in=False).model_dump(exclude_none=True),
        )
    return SessionInfo(logged_in=True, user_id=auth.user_id, username=auth.user_name)


# -------- Login / logout --------


@router.post("/auth/login", dependencies=[Depends(rate_limit("login"))])
def login(
    request: Request,
    payload: dict[str, Any] = Depends(read_payload),
    current: AuthSession | None = Depends(get_current_session),
    session: Session = Depends(get_session),
):
    """
    Authenticate with email + password (form or JSON).

    AJAX callers get {"success", "user", "redirect", "message"}; plain
    form posts are redirected with the outcome in the query string.
    """
    try:
        form = LoginForm.model_validate(payload)
    except ValidationError as exc:
        messages = _form_messages(exc)
        return flow_error(request, "login", 400, ", ".join(messages), messages)

    try:
        result = service.login(session, form, current)
    except StorefrontError as exc:
        return flow_error(request, "login", exc.status_code, exc.detail)

    message = f"Welcome back, {result.user.first_name}!"
    redirect = "/admin/dashboard" if result.is_admin else "/home"

    if is_ajax_request(request):
        response: Response = JSONResponse(
            content={
                "success": True,
                "user": result.summary.model_dump(),
                "redirect": redirect,
                "message": message,
            }
        )
    else:
        response = flow_redirect(redirect, "login", True, message)

    _set_session_cookie(response, result)
    return response


@router.api_route("/auth/logout", methods=["GET", "POST"])
def logout(
    request: Request,
    current: AuthSession | None = Depends(get_current_session),
    session: Session = Depends(get_session),
):
    """
    End the session. Safe to call when not logged in.
    """
    service.logout(session, current)

    if is_ajax_request(request):
        response: Response = JSONResponse(content={"success": True, "message": LOGOUT_MESSAGE})
    else:
        response = flow_redirect("/home", "logout", True, LOGOUT_MESSAGE)

    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
    return response


# -------- Signup --------


@router.post("/auth/signup")
def signup(
    request: Request,
    payload: dict[str, Any] = Depends(read_payload),
    session: Session = Depends(get_session),
):
    """
    Register a customer account. Does not log the user in.
    """
    try:
        form = SignupForm.model_validate(payload)
    except ValidationError as exc:
        messages = _form_messages(exc)
        return flow_error(request, "signup", 400, ", ".join(messages), messages)

    try:
        user = service.signup(session, form)
    except StorefrontError as exc:
        return flow_error(request, "signup", exc.status_code, exc.detail)

    if not is_ajax_request(request):
        return flow_redirect("/home", "signup", True, SIGNUP_MESSAGE)

    full_name = " ".join(p for p in (user.first_name, user.middle_name, user.last_name) if p)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={
            "success": True,
            "user": UserSummary(id=user.id, email=user.email, name=full_name).model_dump(),
            "message": SIGNUP_MESSAGE,
        },
    )


@router.api_route(
    "/auth/check-email",
    methods=["GET", "POST"],
    dependencies=[Depends(rate_limit("check_user_exists"))],
)
def check_email(
    request: Request,
    payload: dict[str, Any] = Depends(read_payload),
    session: Session = Depends(get_session),
):
    """
    Whether an email is registered (signup/login form hints).

    Rate limited per client IP.
    """
    raw = payload.get("email") or request.query_params.get("email") or ""
    email = normalize_email(str(raw))
    if not email or not is_valid_email(email):
        raise BadRequest("invalid_email")

    exists, archived = service.email_status(session, email)
    return {"success": True, "exists": exists, "is_archived": archived}
