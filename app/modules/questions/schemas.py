from pydantic import BaseModel, field_validator
from typing import List, Optional
from datetime import datetime
from enum import Enum


class QuestionType(str, Enum):
    TEXT = "text"
    MULTIPLE_CHOICE = "multiple_choice"
    YES_NO = "yes_no"
    RATING = "rating"


class QuestionCreate(BaseModel):
    weddingId: str
    questionText: str
    questionType: QuestionType
    isRequired: bool = False
    options: Optional[List[str]] = None
    isPublic: bool = True

    @field_validator("questionText")
    @classmethod
    def text_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Question text is required")
        return value


class QuestionUpdate(BaseModel):
    questionId: str
    questionText: Optional[str] = None
    questionType: Optional[QuestionType] = None
    isRequired: Optional[bool] = None
    options: Optional[List[str]] = None
    isPublic: Optional[bool] = None


class AnswerCreate(BaseModel):
    questionId: str
    answerText: str

    @field_validator("answerText")
    @classmethod
    def answer_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Answer text is required")
        return value


class AnswerUpdate(BaseModel):
    answerId: str
    answerText: str


class AnswerResponse(BaseModel):
    id: str
    question_id: str
    answered_by: Optional[str] = None
    answer_text: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class QuestionResponse(BaseModel):
    id: str
    wedding_id: str
    created_by: Optional[str] = None
    question_text: str
    question_type: QuestionType
    options: Optional[List[str]] = None
    is_required: bool = False
    is_public: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    answers: Optional[List[AnswerResponse]] = None

    class Config:
        from_attributes = True


class QuestionEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    question: QuestionResponse


class QuestionListEnvelope(BaseModel):
    success: bool = True
    questions: List[QuestionResponse]


class AnswerEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    answer: AnswerResponse
