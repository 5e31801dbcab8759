from fastapi import APIRouter, Depends
import logging

from cockpit.api.deps import get_identity_store, get_token_subject
from cockpit.schemas.dashboard import DashboardAccess, DashboardRefreshRequest, DashboardRefreshResponse
from cockpit.services.dashboard_service import authorize_dashboard, resolve_dashboard_access
from cockpit.services.identity_store import IdentityStore
from cockpit.services.metabase_service import refresh_dashboard_url

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/dashboard", tags=["dashboard"])

@router.get("/profiles", response_model=DashboardAccess)
def dashboard_profiles(
    caller_id: str = Depends(get_token_subject),
    store: IdentityStore = Depends(get_identity_store),
):
    # The resolver checks the session itself
    return resolve_dashboard_access(store, caller_id)

@router.post("/refresh", response_model=DashboardRefreshResponse)
def refresh_dashboard(
    body: DashboardRefreshRequest,
    caller_id: str = Depends(get_token_subject),
    store: IdentityStore = Depends(get_identity_store),
):
    authorize_dashboard(store, caller_id, body.dashboard_id)
    embed_url, expires_at = refresh_dashboard_url(body.dashboard_id)
    return DashboardRefreshResponse(dashboard_id=body.dashboard_id, embed_url=embed_url, expires_at=expires_at)
