import re
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app, request
from werkzeug.security import generate_password_hash, check_password_hash

from models import db, User

ALGORITHM = "HS256"
MIN_PASSWORD_LENGTH = 6
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email or ""))


def create_token(user_id: int) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(days=current_app.config["JWT_EXPIRES_DAYS"])).timestamp()),
    }
    return jwt.encode(payload, current_app.config["JWT_SECRET"], algorithm=ALGORITHM)


def decode_token(token: str):
    """Return the user id a token was issued for, or None if it doesn't verify."""
    try:
        payload = jwt.decode(token, current_app.config["JWT_SECRET"], algorithms=[ALGORITHM])
        return int(payload["sub"])
    except (jwt.PyJWTError, KeyError, ValueError):
        return None


def current_user():
    """Resolve the bearer token on the current request to a User, or None."""
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    user_id = decode_token(header[len("Bearer "):].strip())
    if user_id is None:
        return None
    return db.session.get(User, user_id)
