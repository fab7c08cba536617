import logging

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from firebase_admin import auth as firebase_auth
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import Optional

from app.core.settings import settings
from app.db import get_db
from app.exceptions import ConflictException, UnauthorizedException
from app.models.user import User
from app.models.profile import Profile

logger = logging.getLogger("app.auth")

security = HTTPBearer(auto_error=False)

MOCK_TOKEN_PREFIX = "mock-token-"


def _claims_from_token(token: str) -> dict:
    # Test tokens resolve straight to a uid so suites can act as several identities
    if settings.is_test and token.startswith(MOCK_TOKEN_PREFIX):
        uid = token[len(MOCK_TOKEN_PREFIX):]
        if not uid:
            raise UnauthorizedException("Invalid or expired token")
        return {"uid": uid, "email": f"{uid}@example.com"}
    try:
        return firebase_auth.verify_id_token(token)
    except Exception as e:
        logger.info(f"Token verification failed: {e}")
        raise UnauthorizedException("Invalid or expired Firebase token")


def _display_name(claims: dict) -> Optional[str]:
    if claims.get("name"):
        return claims["name"]
    given = claims.get("given_name", "")
    family = claims.get("family_name", "")
    full = (given + " " + family).strip()
    return full or None


def provision_user(db: Session, uid: str, email: str,
                   full_name: Optional[str] = None, avatar_url: Optional[str] = None) -> User:
    """Create the identity record together with its profile.

    Profiles exist for exactly as long as their identity, so both rows are
    written in the same transaction. If a concurrent request provisioned the
    same uid first, that row is returned instead.
    """
    user = User(id=uid, email=email)
    user.profile = Profile(id=uid, full_name=full_name, avatar_url=avatar_url)
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        existing = db.query(User).filter(User.id == uid).first()
        if existing:
            logger.info(f"Identity {uid} was provisioned concurrently")
            return existing
        logger.warning(f"Could not provision identity {uid}: {e.orig}")
        raise ConflictException("Account already exists for this email")
    db.refresh(user)
    logger.info(f"Provisioned identity {uid}")
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None or not credentials.credentials:
        raise UnauthorizedException("Authorization header missing or invalid")

    claims = _claims_from_token(credentials.credentials)
    uid = claims.get("uid")
    email = claims.get("email")
    if not uid:
        raise UnauthorizedException("Token has no uid")

    user = db.query(User).filter(User.id == uid).first()
    if user:
        return user

    if not email:
        raise UnauthorizedException("Token has no email; cannot provision account")
    return provision_user(db, uid, email, _display_name(claims), claims.get("picture"))
