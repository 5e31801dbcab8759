import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cockpit.core.errors import UpstreamQueryError
from cockpit.models.profile import Profile, UserRole
from cockpit.schemas.dashboard import ProfileDashboardBinding
from cockpit.services.roles import highest_role, is_valid_role
from cockpit.services.session_service import SessionRegistry, active_sessions

logger = logging.getLogger(__name__)

UNKNOWN_PROFILE_LABEL = "Unknown profile"


def profile_label(first_name: Optional[str], last_name: Optional[str], email: Optional[str]) -> str:
    first_name = first_name or ""
    last_name = last_name or ""
    if first_name or last_name:
        return f"{first_name} {last_name}".strip()
    return email or UNKNOWN_PROFILE_LABEL


class IdentityStore:
    """Read access to identities, role assignments and dashboard bindings.

    Every database failure is re-raised as UpstreamQueryError so callers can
    tell a broken store apart from an identity that simply has no rows.
    """

    def __init__(self, db: Session, sessions: SessionRegistry = None):
        self.db = db
        self.sessions = sessions if sessions is not None else active_sessions

    def has_active_session(self, identity_id: str) -> bool:
        return self.sessions.is_active(identity_id)

    def get_roles(self, identity_id: str) -> List[str]:
        try:
            rows = self.db.query(UserRole.role).filter(UserRole.user_id == identity_id).all()
        except SQLAlchemyError as e:
            logger.error("Role lookup failed for %s: %s", identity_id, e)
            raise UpstreamQueryError("Failed to fetch user role")
        return [row.role for row in rows if is_valid_role(row.role)]

    def get_role(self, identity_id: str) -> Optional[str]:
        return highest_role(self.get_roles(identity_id))

    def list_dashboard_bindings(self, restrict_to_identity_id: Optional[str] = None) -> List[ProfileDashboardBinding]:
        try:
            query = self.db.query(Profile).filter(Profile.metabase_dashboard_id.isnot(None))
            if restrict_to_identity_id is not None:
                query = query.filter(Profile.id == restrict_to_identity_id)
            profiles = query.all()
        except SQLAlchemyError as e:
            logger.error("Dashboard binding query failed: %s", e)
            raise UpstreamQueryError("Failed to fetch profiles")

        return [
            ProfileDashboardBinding(
                identity_id=p.id,
                label=profile_label(p.first_name, p.last_name, p.email),
                dashboard_id=p.metabase_dashboard_id,
            )
            for p in profiles
        ]
