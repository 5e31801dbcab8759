from fastapi import APIRouter, Depends
import logging

from cockpit.api.deps import get_current_user_id
from cockpit.schemas.email import CompletionResponse, EmailGenerateRequest, EmailImproveRequest, TranslateRequest
from cockpit.services import email_generator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/emails", tags=["emails"])

@router.post("/generate", response_model=CompletionResponse)
def generate_email(body: EmailGenerateRequest, user_id: str = Depends(get_current_user_id)):
    result = email_generator.generate_email(
        email_input=body.email_input,
        language=body.language,
        occasion=body.occasion,
        tone=body.tone,
        response_type=body.response_type,
        provider=body.provider,
        model=body.model,
        custom_instructions=body.custom_instructions,
        custom_tone=body.custom_tone,
    )
    subject, email = email_generator.parse_email_response(result.content)
    return CompletionResponse(response=result.content, subject=subject, email=email, model=result.model, usage=result.usage)

@router.post("/improve", response_model=CompletionResponse)
def improve_email(body: EmailImproveRequest, user_id: str = Depends(get_current_user_id)):
    result = email_generator.improve_email(
        current_email=body.current_email,
        improvement_instructions=body.improvement_instructions,
        language=body.language,
        occasion=body.occasion,
        tone=body.tone,
        provider=body.provider,
        model=body.model,
    )
    subject, email = email_generator.parse_email_response(result.content)
    return CompletionResponse(response=result.content, subject=subject, email=email, model=result.model, usage=result.usage)

@router.post("/translate", response_model=CompletionResponse)
def translate(body: TranslateRequest, user_id: str = Depends(get_current_user_id)):
    result = email_generator.translate_text(body.text, body.target_language, body.provider, body.model)
    return CompletionResponse(response=result.content, model=result.model, usage=result.usage)
