import bcrypt
import jwt
import logging
from datetime import datetime, timedelta
from typing import Optional

from cockpit.core import config
from cockpit.core.errors import ConfigurationError, NotAuthenticated
from cockpit.models.profile import Profile

logger = logging.getLogger(__name__)

# --- Password hashing ---

def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')

def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against its hash."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), hashed.encode('utf-8'))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False

# --- JWT Helpers ---

def _session_secret() -> str:
    if not config.SECRET_KEY:
        raise ConfigurationError("SECRET_KEY is not configured")
    return config.SECRET_KEY

def create_access_token(data: dict, expires_delta: timedelta = None):
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, _session_secret(), algorithm=config.ALGORITHM)

def decode_access_token(token: str) -> dict:
    """Decode a session bearer token, raising NotAuthenticated on any failure."""
    if not token:
        raise NotAuthenticated("Missing access token")
    try:
        payload = jwt.decode(token, _session_secret(), algorithms=[config.ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise NotAuthenticated("Access token expired")
    except jwt.InvalidTokenError as e:
        logger.warning("Rejected access token: %s", e.__class__.__name__)
        raise NotAuthenticated("Invalid access token")
    if payload.get("type") != "access" or not payload.get("sub"):
        raise NotAuthenticated("Invalid access token")
    return payload

def authenticate_user(db, email: str, password: str) -> Optional[Profile]:
    profile = db.query(Profile).filter(Profile.email == email.strip().lower()).first()
    if not profile:
        return None
    if not verify_password(password, profile.password):
        return None
    return profile
