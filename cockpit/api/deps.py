from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from cockpit.core.database import get_db
from cockpit.core.errors import NotAuthenticated, PermissionDenied
from cockpit.services.identity_store import IdentityStore
from cockpit.services.roles import is_admin_role
from cockpit.services.security import decode_access_token
from cockpit.services.session_service import active_sessions

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token", auto_error=False)

def get_token_subject(token: str = Depends(oauth2_scheme)) -> str:
    """Profile id from the bearer token, without checking the session."""
    return decode_access_token(token)["sub"]

def get_current_user_id(user_id: str = Depends(get_token_subject)) -> str:
    if not active_sessions.is_active(user_id):
        raise NotAuthenticated("Session expired")
    return user_id

def get_identity_store(db: Session = Depends(get_db)) -> IdentityStore:
    return IdentityStore(db)

def get_current_role(
    user_id: str = Depends(get_current_user_id),
    store: IdentityStore = Depends(get_identity_store),
):
    return store.get_role(user_id)

def require_admin(role=Depends(get_current_role)) -> str:
    if not is_admin_role(role):
        raise PermissionDenied("Access denied. Admin privileges required.")
    return role
