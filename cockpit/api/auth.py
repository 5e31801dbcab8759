from fastapi import APIRouter, Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
import logging

from cockpit.core.database import get_db
from cockpit.models.profile import Profile
from cockpit.api.deps import get_current_user_id
from cockpit.schemas.profile import UserCreate, UserLogin
from cockpit.services.security import authenticate_user, create_access_token, hash_password
from cockpit.services.session_service import active_sessions

logger = logging.getLogger(__name__)
router = APIRouter(tags=["auth"])

def _client_ip(request: Request):
    client_ip = request.headers.get("x-forwarded-for") or (request.client.host if request.client else None)
    if client_ip and "," in client_ip:
        client_ip = client_ip.split(",")[0].strip()
    return client_ip

def _start_session(profile: Profile, request: Request) -> dict:
    active_sessions.start(profile.id, profile.email, ip=_client_ip(request))
    access_token = create_access_token(data={"sub": profile.id})
    logger.info("Login for %s", profile.id)
    return {"access_token": access_token, "token_type": "bearer", "user_id": profile.id}

@router.post("/register", status_code=status.HTTP_201_CREATED)
def register_user(user: UserCreate, db: Session = Depends(get_db)):
    email = user.email.strip().lower()
    if db.query(Profile).filter(Profile.email == email).first():
        raise HTTPException(status_code=400, detail="Email already registered")

    profile = Profile(
        email=email,
        password=hash_password(user.password),
        first_name=user.first_name,
        last_name=user.last_name,
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    logger.info("Registered profile %s", profile.id)
    return {"message": "Registration successful", "user_id": profile.id}

@router.post("/login")
def login(user: UserLogin, request: Request, db: Session = Depends(get_db)):
    profile = authenticate_user(db, user.email, user.password)
    if not profile:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return _start_session(profile, request)

@router.post("/token")
def login_for_access_token(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    profile = authenticate_user(db, form_data.username, form_data.password)
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _start_session(profile, request)

@router.post("/logout")
def logout(user_id: str = Depends(get_current_user_id)):
    active_sessions.end(user_id)
    logger.info("Logout for %s", user_id)
    return {"message": "Logged out"}
