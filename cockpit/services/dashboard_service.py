import logging
from typing import Callable, List, Optional

from cockpit.core.errors import NotAuthenticated, PermissionDenied
from cockpit.schemas.dashboard import DashboardAccess, ProfileDashboardBinding
from cockpit.services.identity_store import IdentityStore
from cockpit.services.metabase_service import generate_iframe_url, validate_dashboard_id
from cockpit.services.roles import is_admin_role

logger = logging.getLogger(__name__)


def _visible_bindings(store: IdentityStore, caller_id: Optional[str]):
    """Authenticate the caller and list the bindings its role may see."""
    if not caller_id or not store.has_active_session(caller_id):
        raise NotAuthenticated("Not authenticated")

    role = store.get_role(caller_id)
    is_admin_view = is_admin_role(role)

    if is_admin_view:
        bindings = store.list_dashboard_bindings()
    else:
        bindings = store.list_dashboard_bindings(restrict_to_identity_id=caller_id)
        # The store filter is not the only line of defence
        bindings = [b for b in bindings if b.identity_id == caller_id]

    bindings = sorted(bindings, key=lambda b: (b.label.casefold(), b.identity_id))
    return bindings, is_admin_view


def resolve_dashboard_access(
    store: IdentityStore,
    caller_id: Optional[str],
    issue_url: Callable[[int], str] = generate_iframe_url,
) -> DashboardAccess:
    bindings, is_admin_view = _visible_bindings(store, caller_id)

    initial: Optional[ProfileDashboardBinding] = next(
        (b for b in bindings if b.identity_id == caller_id),
        bindings[0] if bindings else None,
    )
    initial_profile_id = initial.identity_id if initial else caller_id
    initial_dashboard_id = initial.dashboard_id if initial else None

    initial_embed_url = None
    if initial_dashboard_id:
        initial_embed_url = issue_url(initial_dashboard_id)

    logger.info(
        "Resolved %d dashboard profile(s) for %s (admin_view=%s)",
        len(bindings), caller_id, is_admin_view,
    )
    return DashboardAccess(
        profiles=bindings,
        initial_profile_id=initial_profile_id,
        initial_dashboard_id=initial_dashboard_id,
        initial_embed_url=initial_embed_url,
        is_admin_view=is_admin_view,
    )


def authorize_dashboard(store: IdentityStore, caller_id: Optional[str], dashboard_id: int) -> List[ProfileDashboardBinding]:
    """Raise PermissionDenied unless `dashboard_id` is visible to the caller."""
    validate_dashboard_id(dashboard_id)
    bindings, _ = _visible_bindings(store, caller_id)
    matching = [b for b in bindings if b.dashboard_id == dashboard_id]
    if not matching:
        logger.warning("Dashboard %d refused for %s", dashboard_id, caller_id)
        raise PermissionDenied("You do not have access to this dashboard")
    return matching
