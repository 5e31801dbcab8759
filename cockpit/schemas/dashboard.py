from pydantic import BaseModel, Field
from typing import List, Optional

class ProfileDashboardBinding(BaseModel):
    identity_id: str
    label: str
    dashboard_id: int

class DashboardAccess(BaseModel):
    profiles: List[ProfileDashboardBinding]
    initial_profile_id: str
    initial_dashboard_id: Optional[int] = None
    initial_embed_url: Optional[str] = None
    is_admin_view: bool

class DashboardRefreshRequest(BaseModel):
    dashboard_id: int = Field(..., gt=0)

class DashboardRefreshResponse(BaseModel):
    dashboard_id: int
    embed_url: str
    expires_at: int
