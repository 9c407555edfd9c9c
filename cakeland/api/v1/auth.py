from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cakeland.api.deps import get_current_user, load_token_user, read_token
from cakeland.core.config import settings
from cakeland.core.exceptions import APIError, EmailAlreadyExists, InvalidCredentials
from cakeland.core.rate_limiter import limiter
from cakeland.core.security import (
    REFRESH_TOKEN,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)
from cakeland.db.session import get_db
from cakeland.middleware.csrf import CSRF_COOKIE_NAME, generate_csrf_token, set_csrf_cookie
from cakeland.models.token_blacklist import TokenBlacklist
from cakeland.models.user import User
from cakeland.schemas.user import CustomerSignup, UserLogin, UserProfile
from cakeland.utils.response import success

logger = structlog.get_logger()

router = APIRouter()

AUTH_COOKIES = {
    "access_token": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    "refresh_token": settings.REFRESH_TOKEN_EXPIRE_DAYS * 86400,
}


def _secure_cookies(request: Request) -> bool:
    return settings.ENVIRONMENT == "production" and request.url.scheme == "https"


def _set_cookie(response: JSONResponse, request: Request, name: str, value: str) -> None:
    response.set_cookie(
        key=name,
        value=value,
        max_age=AUTH_COOKIES[name],
        httponly=True,
        secure=_secure_cookies(request),
        samesite="lax",
        path="/",
    )


def _access_token_for(user: User) -> str:
    return create_access_token(
        {"sub": str(user.id), "role": user.role.value, "session_version": user.session_version}
    )


def _revoke(db: Session, token: str, reason: str) -> None:
    """Blacklist a token's jti until the token would have expired anyway."""
    try:
        claims = decode_token(token)
    except HTTPException:
        # Expired or forged tokens are already unusable.
        return

    jti, subject, exp = claims.get("jti"), claims.get("sub"), claims.get("exp")
    if not (jti and subject and exp):
        return
    if db.query(TokenBlacklist.id).filter(TokenBlacklist.jti == jti).first():
        return

    db.add(
        TokenBlacklist(
            jti=jti,
            user_id=int(subject),
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc).replace(tzinfo=None),
            reason=reason,
        )
    )


async def _read_credentials(request: Request) -> UserLogin:
    if "application/json" in request.headers.get("content-type", ""):
        body = await request.json()
    else:
        body = dict(await request.form())

    try:
        return UserLogin.model_validate(body)
    except ValidationError as exc:
        raise APIError(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            message="Validation failed",
            errors=exc.errors(include_url=False, include_context=False),
        )


@router.get("/csrf-token")
def get_csrf_token():
    response = JSONResponse(content=success(message="CSRF token set"))
    set_csrf_cookie(response, generate_csrf_token())
    return response


@router.post("/register", response_model=dict, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
def register(request: Request, signup: CustomerSignup, db: Session = Depends(get_db)):
    """Create a customer account. Admin accounts are only ever seeded."""
    if db.query(User.id).filter(User.email == signup.email).first():
        raise EmailAlreadyExists()
    if signup.phone and db.query(User.id).filter(User.phone == signup.phone).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Phone number already registered")

    user = User(
        email=signup.email,
        full_name=signup.full_name,
        phone=signup.phone,
        password_hash=hash_password(signup.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info("customer_registered", user_id=user.id)
    return success(data=UserProfile.model_validate(user), message="Registration successful")


@router.post("/login", response_model=dict)
@limiter.limit("10/minute")
async def login(request: Request, db: Session = Depends(get_db)):
    """Sign in with a JSON body or form fields; tokens come back in the body and as httpOnly cookies."""
    credentials = await _read_credentials(request)

    user = db.query(User).filter(User.email == credentials.email).first()
    if not user or not verify_password(credentials.password, user.password_hash):
        logger.info("login_failed", email=credentials.email)
        raise InvalidCredentials()
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is inactive")

    # One live session per account in production.
    if settings.ENVIRONMENT == "production":
        user.session_version += 1
        db.commit()
        db.refresh(user)

    access_token = _access_token_for(user)
    refresh_token = create_refresh_token({"sub": str(user.id), "session_version": user.session_version})

    response = JSONResponse(
        content=success(
            data={
                "user": UserProfile.model_validate(user),
                "access_token": access_token,
                "refresh_token": refresh_token,
            },
            message="Login successful",
        )
    )
    _set_cookie(response, request, "access_token", access_token)
    _set_cookie(response, request, "refresh_token", refresh_token)
    return response


@router.post("/refresh")
@limiter.limit("20/minute")
def refresh(request: Request, db: Session = Depends(get_db)):
    token = request.cookies.get("refresh_token")
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Refresh token not found")

    user = load_token_user(db, read_token(db, token, expected_type=REFRESH_TOKEN))

    response = JSONResponse(content=success(message="Token refreshed"))
    _set_cookie(response, request, "access_token", _access_token_for(user))
    return response


@router.post("/logout")
def logout(request: Request, db: Session = Depends(get_db)):
    for name in AUTH_COOKIES:
        token = request.cookies.get(name)
        if token:
            _revoke(db, token, reason="logout")

    try:
        db.commit()
    except IntegrityError:
        # A concurrent logout already stored the same jti.
        db.rollback()

    response = JSONResponse(content=success(message="Logout successful"))
    secure = _secure_cookies(request)
    for name in (*AUTH_COOKIES, CSRF_COOKIE_NAME):
        response.delete_cookie(key=name, path="/", samesite="lax", secure=secure)
    return response


@router.get("/me", response_model=dict)
def me(current_user: User = Depends(get_current_user)):
    return success(data=UserProfile.model_validate(current_user), message="Current user")
