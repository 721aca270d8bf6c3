"""
Password hashing, token issuance and role checks for advisor routes.
"""

from datetime import datetime, timedelta, timezone
from functools import wraps

import bcrypt
import jwt
from flask import current_app, g, request

from api_errors import AuthenticationError, AuthorizationError
from database import MANAGER_ROLE


TOKEN_ALGORITHM = "HS256"
TOKEN_LIFETIME = timedelta(hours=1)

INVALID_CREDENTIALS = "Invalid credentials"

# Compared against when the email is unknown so both login failures cost
# one bcrypt check at the configured cost. One hash per cost factor.
_dummy_hashes = {}


def _dummy_hash(rounds):
    if rounds not in _dummy_hashes:
        _dummy_hashes[rounds] = bcrypt.hashpw(b"not-a-real-password", bcrypt.gensalt(rounds=rounds))
    return _dummy_hashes[rounds]


def hash_password(password: str, rounds: int = 10) -> str:
    # bcrypt only looks at the first 72 bytes
    password_bytes = password.encode("utf-8")[:72]
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash, rounds: int = 10) -> bool:
    password_bytes = (password or "").encode("utf-8")[:72]
    if not password_hash:
        bcrypt.checkpw(password_bytes, _dummy_hash(rounds))
        return False
    return bcrypt.checkpw(password_bytes, password_hash.encode("utf-8"))


def create_token(advisor_id: str, role: str, secret: str, now=None) -> str:
    now = now or datetime.now(timezone.utc)
    payload = {
        "advisorId": advisor_id,
        "role": role,
        "iat": now,
        "exp": now + TOKEN_LIFETIME,
    }
    return jwt.encode(payload, secret, algorithm=TOKEN_ALGORITHM)


def decode_token(token, secret):
    """Verify a bearer token and return its claims.

    Missing, malformed, expired or tampered tokens all raise
    ``AuthenticationError``.
    """
    if not token:
        raise AuthenticationError("Authentication token missing")
    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[TOKEN_ALGORITHM],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired") from None
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid token") from None

    if not claims.get("advisorId") or not claims.get("role"):
        raise AuthenticationError("Invalid token")
    return claims


def authorize_advisor_scope(claims, requested_advisor_id):
    """Managers may act on any advisor; advisors only on themselves."""
    if claims.get("role") == MANAGER_ROLE:
        return
    if claims.get("advisorId") == requested_advisor_id:
        return
    raise AuthorizationError("Access denied")


def require_manager(claims):
    if claims.get("role") != MANAGER_ROLE:
        raise AuthorizationError("Manager access required")


def _bearer_token():
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def token_required(f):
    """Decorator: reject the request unless it carries a valid bearer token."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.current_user = decode_token(_bearer_token(), current_app.config["JWT_SECRET"])
        return f(*args, **kwargs)
    return decorated_function


def advisor_scope_required(f):
    """Decorator for routes taking ``advisor_id``: self or manager only."""
    @wraps(f)
    @token_required
    def decorated_function(*args, **kwargs):
        authorize_advisor_scope(g.current_user, kwargs.get("advisor_id"))
        return f(*args, **kwargs)
    return decorated_function


def manager_required(f):
    @wraps(f)
    @token_required
    def decorated_function(*args, **kwargs):
        require_manager(g.current_user)
        return f(*args, **kwargs)
    return decorated_function
