from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from datetime import datetime
import logging

from cockpit.core.database import get_db
from cockpit.core.errors import NotFound, PermissionDenied
from cockpit.models.profile import Profile, UserRole
from cockpit.api.deps import get_current_role, get_current_user_id, get_identity_store, require_admin
from cockpit.schemas.profile import ProfileList, ProfileRead, ProfileUpdate, ProfileWithRole, RoleGrant
from cockpit.services.identity_store import IdentityStore
from cockpit.services.roles import can_edit_profile, can_manage_role, highest_role, is_admin_role
from cockpit.services.session_service import active_sessions

logger = logging.getLogger(__name__)
router = APIRouter(tags=["profiles"])

def _get_profile(db: Session, profile_id: str) -> Profile:
    profile = db.query(Profile).filter(Profile.id == profile_id).first()
    if not profile:
        raise NotFound("Profile not found")
    return profile

@router.get("/profiles/me", response_model=ProfileRead)
def current_profile(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return _get_profile(db, user_id)

@router.get("/admin/profiles", response_model=ProfileList)
def list_profiles(
    role: str = Depends(require_admin),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    roles_by_user = {}
    for row in db.query(UserRole).all():
        roles_by_user.setdefault(row.user_id, []).append(row.role)

    profiles = [
        ProfileWithRole(
            id=p.id,
            email=p.email,
            first_name=p.first_name,
            last_name=p.last_name,
            metabase_dashboard_id=p.metabase_dashboard_id,
            role=highest_role(roles_by_user.get(p.id, [])),
            created_at=p.created_at,
            updated_at=p.updated_at,
        )
        for p in db.query(Profile).order_by(Profile.created_at).all()
    ]
    return ProfileList(profiles=profiles, current_user_id=user_id, is_super_admin=role == "super_admin")

@router.put("/admin/profiles/{profile_id}", response_model=ProfileRead)
def update_profile(
    profile_id: str,
    data: ProfileUpdate,
    user_id: str = Depends(get_current_user_id),
    caller_role=Depends(get_current_role),
    store: IdentityStore = Depends(get_identity_store),
    db: Session = Depends(get_db),
):
    profile = _get_profile(db, profile_id)
    if not can_edit_profile(caller_role, store.get_role(profile_id), user_id == profile_id):
        raise PermissionDenied("You do not have permission to edit this profile")

    # Dashboard bindings decide what the embed issuer signs; admins only, own profile included
    rebinds_dashboard = (
        "metabase_dashboard_id" in data.model_fields_set
        and data.metabase_dashboard_id != profile.metabase_dashboard_id
    )
    if rebinds_dashboard and not is_admin_role(caller_role):
        raise PermissionDenied("Only admins can change dashboard assignments")

    profile.first_name = data.first_name
    profile.last_name = data.last_name
    profile.email = data.email.strip().lower()
    if rebinds_dashboard:
        profile.metabase_dashboard_id = data.metabase_dashboard_id
    profile.updated_at = datetime.utcnow()
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Email already registered")
    db.refresh(profile)
    logger.info("Profile %s updated by %s", profile_id, user_id)
    return profile

@router.delete("/admin/users/{target_id}")
def delete_user(
    target_id: str,
    user_id: str = Depends(get_current_user_id),
    caller_role=Depends(get_current_role),
    db: Session = Depends(get_db),
):
    if caller_role != "super_admin":
        raise PermissionDenied("Only super_admin can delete users")
    if target_id == user_id:
        raise PermissionDenied("You cannot delete your own account")

    profile = _get_profile(db, target_id)
    db.query(UserRole).filter(UserRole.user_id == target_id).delete()
    db.delete(profile)
    db.commit()
    active_sessions.end(target_id)
    logger.info("User %s deleted by %s", target_id, user_id)
    return {"message": "User deleted"}

@router.post("/admin/users/{target_id}/roles")
def grant_role(
    target_id: str,
    body: RoleGrant,
    user_id: str = Depends(get_current_user_id),
    caller_role=Depends(get_current_role),
    db: Session = Depends(get_db),
):
    if not can_manage_role(caller_role, body.role):
        raise PermissionDenied(f"You may not grant role {body.role}")
    _get_profile(db, target_id)

    exists = db.query(UserRole).filter(UserRole.user_id == target_id, UserRole.role == body.role).first()
    if not exists:
        db.add(UserRole(user_id=target_id, role=body.role))
        try:
            db.commit()
        except IntegrityError:
            # Granted concurrently; already present is success
            db.rollback()
    logger.info("Role %s granted to %s by %s", body.role, target_id, user_id)
    return {"message": "Role granted", "role": body.role}

@router.delete("/admin/users/{target_id}/roles/{role}")
def revoke_role(
    target_id: str,
    role: str,
    user_id: str = Depends(get_current_user_id),
    caller_role=Depends(get_current_role),
    db: Session = Depends(get_db),
):
    if not can_manage_role(caller_role, role):
        raise PermissionDenied(f"You may not revoke role {role}")
    _get_profile(db, target_id)

    db.query(UserRole).filter(UserRole.user_id == target_id, UserRole.role == role).delete()
    db.commit()
    logger.info("Role %s revoked from %s by %s", role, target_id, user_id)
    return {"message": "Role revoked", "role": role}
