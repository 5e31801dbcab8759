from pydantic import BaseModel, Field
from typing import Any, Literal, Optional

Provider = Literal["openai", "langdock"]

class EmailGenerateRequest(BaseModel):
    email_input: str = Field(..., min_length=1)
    custom_instructions: Optional[str] = None
    language: str = "german"
    occasion: str = ""
    tone: str = "concise"
    custom_tone: Optional[str] = None
    response_type: Literal["antwort", "neu"] = "antwort"
    provider: Provider = "langdock"
    model: str = "gpt-4.1"

class EmailImproveRequest(BaseModel):
    current_email: str = Field(..., min_length=1)
    improvement_instructions: str = Field(..., min_length=1)
    language: str = "german"
    occasion: str = ""
    tone: str = "concise"
    provider: Provider = "langdock"
    model: str = "gpt-4.1"

class TranslateRequest(BaseModel):
    text: str
    target_language: str = "german"
    provider: Provider = "langdock"
    model: str = "gpt-4.1"

class CompletionResponse(BaseModel):
    response: str
    subject: Optional[str] = None
    email: Optional[str] = None
    model: Optional[str] = None
    usage: Any = None
