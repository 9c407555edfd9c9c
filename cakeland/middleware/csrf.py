from secrets import token_urlsafe
import hmac

from fastapi import Request, Response

from cakeland.core.config import settings

CSRF_COOKIE_NAME = "csrf_token"
CSRF_HEADER_NAME = "X-CSRF-Token"
CSRF_COOKIE_MAX_AGE = 60 * 60 * 24
CSRF_PROTECTED_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


def generate_csrf_token() -> str:
    return token_urlsafe(32)


def set_csrf_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=CSRF_COOKIE_NAME,
        value=token,
        httponly=False,
        secure=settings.ENVIRONMENT == "production",
        samesite="lax",
        max_age=CSRF_COOKIE_MAX_AGE,
        path="/",
    )


def verify_csrf_token(request: Request) -> bool:
    csrf_cookie = request.cookies.get(CSRF_COOKIE_NAME)
    csrf_header = request.headers.get(CSRF_HEADER_NAME)

    if not csrf_cookie or not csrf_header:
        return False

    return hmac.compare_digest(csrf_cookie, csrf_header)


def csrf_exempt_paths() -> set:
    prefix = settings.API_V1_STR
    return {
        f"{prefix}/auth/login",
        f"{prefix}/auth/register",
        f"{prefix}/auth/refresh",
        f"{prefix}/auth/logout",
    }


def requires_csrf_check(request: Request) -> bool:
    """Double-submit check only runs in production, and only for state-changing calls."""
    if settings.ENVIRONMENT != "production":
        return False
    path = request.url.path.rstrip("/") or "/"
    return request.method in CSRF_PROTECTED_METHODS and path not in csrf_exempt_paths()
