from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from datetime import datetime
from typing import Any, Literal, Optional

Language = Literal["german", "english"]

class SummaryGenerateRequest(BaseModel):
    transcript: str = Field(..., min_length=1)
    language: Language = "german"
    customer_name: str = ""
    interlocutor: str = ""
    model: str = "gpt-4.1"

class SummaryGenerateResponse(BaseModel):
    content: str
    model: Optional[str] = None
    usage: Any = None

class TranscriptionResponse(BaseModel):
    transcript: str
    language: str

class SummaryCreate(BaseModel):
    customer_name: str = Field(..., min_length=1)
    customer_email: Optional[EmailStr] = None
    customer_phone: Optional[str] = None
    transcript: str
    summary: str
    language: Language = "german"

class SummaryUpdate(BaseModel):
    customer_name: Optional[str] = None
    customer_email: Optional[EmailStr] = None
    customer_phone: Optional[str] = None
    transcript: Optional[str] = None
    summary: Optional[str] = None
    language: Optional[Language] = None

    @field_validator("customer_name", "transcript", "summary", "language")
    @classmethod
    def not_null(cls, value):
        # May be omitted, but the columns cannot be cleared
        if value is None:
            raise ValueError("may not be null")
        return value

class SummaryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    customer_name: str
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    transcript: str
    summary: str
    language: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user_email: Optional[str] = None
    user_name: Optional[str] = None
