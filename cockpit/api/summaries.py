from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session
from datetime import datetime
from typing import List
import os
import shutil
import tempfile
import logging

from cockpit.core.database import get_db
from cockpit.core.errors import NotFound
from cockpit.models.profile import Profile
from cockpit.models.summary import CallSummary
from cockpit.api.deps import get_current_role, get_current_user_id
from cockpit.schemas.summary import (
    SummaryCreate,
    SummaryGenerateRequest,
    SummaryGenerateResponse,
    SummaryRead,
    SummaryUpdate,
    TranscriptionResponse,
)
from cockpit.services.audio_service import transcribe_file
from cockpit.services.identity_store import profile_label
from cockpit.services.roles import SUMMARY_READ_ALL_ROLES
from cockpit.services.summary_generator import generate_summary

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/summaries", tags=["summaries"])

def _scoped_query(db: Session, user_id: str, role):
    query = db.query(CallSummary)
    if role not in SUMMARY_READ_ALL_ROLES:
        query = query.filter(CallSummary.user_id == user_id)
    return query

def _get_visible_summary(db: Session, summary_id: str, user_id: str, role) -> CallSummary:
    summary = _scoped_query(db, user_id, role).filter(CallSummary.id == summary_id).first()
    if not summary:
        raise NotFound("Summary not found")
    return summary

@router.post("/transcribe", response_model=TranscriptionResponse)
def transcribe(
    audio: UploadFile = File(...),
    language: str = Form("de"),
    user_id: str = Depends(get_current_user_id),
):
    if language not in ("de", "en"):
        raise ValueError("language must be 'de' or 'en'")

    with tempfile.NamedTemporaryFile(suffix=os.path.splitext(audio.filename or "")[1] or ".bin", delete=False) as tmp:
        shutil.copyfileobj(audio.file, tmp)
        src_path = tmp.name
    try:
        transcript = transcribe_file(src_path, language)
    finally:
        try:
            os.remove(src_path)
        except OSError:
            pass
    logger.info("Transcribed upload for %s (%d chars)", user_id, len(transcript))
    return TranscriptionResponse(transcript=transcript, language=language)

@router.post("/generate", response_model=SummaryGenerateResponse)
def generate(body: SummaryGenerateRequest, user_id: str = Depends(get_current_user_id)):
    result = generate_summary(body.transcript, body.language, body.customer_name, body.interlocutor, body.model)
    return SummaryGenerateResponse(content=result.content, model=result.model, usage=result.usage)

@router.post("", response_model=SummaryRead, status_code=status.HTTP_201_CREATED)
def save_summary(body: SummaryCreate, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    summary = CallSummary(
        user_id=user_id,
        customer_name=body.customer_name,
        customer_email=body.customer_email or None,
        customer_phone=body.customer_phone or None,
        transcript=body.transcript,
        summary=body.summary,
        language=body.language,
    )
    db.add(summary)
    db.commit()
    db.refresh(summary)
    logger.info("Summary %s saved by %s", summary.id, user_id)
    return summary

@router.get("", response_model=List[SummaryRead])
def list_summaries(
    user_id: str = Depends(get_current_user_id),
    role=Depends(get_current_role),
    db: Session = Depends(get_db),
    limit: int = 100,
    offset: int = 0,
):
    rows = (
        _scoped_query(db, user_id, role)
        .outerjoin(Profile, Profile.id == CallSummary.user_id)
        .add_columns(Profile.email, Profile.first_name, Profile.last_name)
        .order_by(CallSummary.created_at.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    results = []
    for summary, email, first_name, last_name in rows:
        item = SummaryRead.model_validate(summary)
        item.user_email = email or ""
        item.user_name = profile_label(first_name, last_name, None) if (first_name or last_name) else ""
        results.append(item)
    return results

@router.patch("/{summary_id}", response_model=SummaryRead)
def update_summary(
    summary_id: str,
    body: SummaryUpdate,
    user_id: str = Depends(get_current_user_id),
    role=Depends(get_current_role),
    db: Session = Depends(get_db),
):
    summary = _get_visible_summary(db, summary_id, user_id, role)
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(summary, field, value)
    summary.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(summary)
    return summary

@router.delete("/{summary_id}")
def delete_summary(
    summary_id: str,
    user_id: str = Depends(get_current_user_id),
    role=Depends(get_current_role),
    db: Session = Depends(get_db),
):
    summary = _get_visible_summary(db, summary_id, user_id, role)
    db.delete(summary)
    db.commit()
    logger.info("Summary %s deleted by %s", summary_id, user_id)
    return {"message": "Summary deleted"}
