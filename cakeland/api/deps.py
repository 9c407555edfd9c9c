import ipaddress
from typing import Optional

import structlog
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from cakeland.core.config import settings
from cakeland.core.security import ACCESS_TOKEN, decode_token
from cakeland.db.session import get_db
from cakeland.models.token_blacklist import TokenBlacklist
from cakeland.models.user import User, UserRole
from cakeland.utils.clock import utcnow

logger = structlog.get_logger()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def is_token_revoked(db: Session, jti: Optional[str]) -> bool:
    # Every token we issue carries a jti; one without it was not minted here.
    if not jti:
        return True
    entry = (
        db.query(TokenBlacklist.id)
        .filter(TokenBlacklist.jti == jti, TokenBlacklist.expires_at > utcnow())
        .first()
    )
    return entry is not None


def read_token(db: Session, token: str, expected_type: str) -> dict:
    """Decode a JWT and make sure it is of the expected type and not revoked."""
    claims = decode_token(token)
    if claims.get("type") != expected_type:
        raise _unauthorized("Invalid token type")
    if is_token_revoked(db, claims.get("jti")):
        raise _unauthorized("Token has been revoked")
    return claims


def check_session_version(claims: dict, user: User) -> None:
    """Tokens minted before the user's last session rotation are dead."""
    try:
        version = int(claims.get("session_version", 0))
    except (TypeError, ValueError):
        version = -1
    if version != user.session_version:
        raise _unauthorized("Session has been invalidated. Please login again.")


def load_token_user(db: Session, claims: dict) -> User:
    subject = claims.get("sub")
    if not subject:
        raise _unauthorized("Invalid authentication credentials")

    user = db.query(User).filter(User.id == int(subject)).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is inactive")

    check_session_version(claims, user)
    return user


def _bearer_token(request: Request) -> Optional[str]:
    scheme, _, credentials = (request.headers.get("Authorization") or "").partition(" ")
    if scheme == "Bearer" and credentials:
        return credentials
    return None


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """The signed-in user. The access_token cookie wins over an Authorization header."""
    token = request.cookies.get("access_token") or _bearer_token(request)
    if not token:
        raise _unauthorized("Not authenticated")

    claims = read_token(db, token, expected_type=ACCESS_TOKEN)
    return load_token_user(db, claims)


def get_real_client_ip(request: Request) -> tuple[str | None, list[str]]:
    """Client address, honouring X-Forwarded-For only behind a trusted proxy in production."""
    peer = request.client.host if request.client else None
    if not (
        settings.ENVIRONMENT == "production"
        and settings.TRUST_PROXY_HEADERS
        and settings.is_trusted_proxy(peer)
    ):
        return peer, []

    header = request.headers.get("X-Forwarded-For") or ""
    chain = [hop.strip() for hop in header.split(",") if hop.strip()]
    for hop in chain:
        try:
            ipaddress.ip_address(hop)
        except ValueError:
            continue
        return hop, chain
    return peer, chain


def require_admin(request: Request, current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")

    client_ip, chain = get_real_client_ip(request)
    action = f"{request.method} {request.url.path}"

    if settings.ENVIRONMENT == "production" and client_ip not in settings.admin_allowed_ips:
        logger.warning(
            "admin_access_denied",
            action=action,
            admin_user_id=current_user.id,
            client_ip=client_ip,
            ip_chain=chain,
        )
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")

    logger.info("admin_action", action=action, admin_user_id=current_user.id, client_ip=client_ip)
    return current_user
