from fastapi import APIRouter, Depends
from app.core.dependencies import get_current_principal, load_row, load_wedding_ref
from app.core.errors import NotFound
from app.core.policy import (
    Action, AnswerRef, ChildKind, ChildRef, Principal, QuestionRef, authorize, is_wedding_admin
)
from app.database.supabase_client import SupabaseStore, get_store
from app.modules.questions.schemas import (
    AnswerCreate, AnswerEnvelope, AnswerUpdate,
    QuestionCreate, QuestionEnvelope, QuestionListEnvelope, QuestionUpdate
)
from app.modules.questions.service import ANSWERS_TABLE, QUESTIONS_TABLE, QuestionService

router = APIRouter(prefix="/questions", tags=["questions"])
answers_router = APIRouter(prefix="/answers", tags=["answers"])


def get_question_service(store: SupabaseStore = Depends(get_store)) -> QuestionService:
    return QuestionService(store)


@router.get("", response_model=QuestionListEnvelope)
async def list_questions(
    weddingId: str,
    includeAnswers: bool = False,
    principal: Principal = Depends(get_current_principal),
    store: SupabaseStore = Depends(get_store),
    service: QuestionService = Depends(get_question_service)
):
    """List a wedding's questions, optionally with answers"""
    wedding = load_wedding_ref(store, weddingId)
    authorize(principal, Action.READ, ChildRef(wedding, ChildKind.QUESTION))
    questions = service.list_questions(weddingId, principal, is_wedding_admin(principal, wedding), includeAnswers)
    return {"success": True, "questions": questions}


@router.post("", response_model=QuestionEnvelope, status_code=201)
async def create_question(
    question_data: QuestionCreate,
    principal: Principal = Depends(get_current_principal),
    store: SupabaseStore = Depends(get_store),
    service: QuestionService = Depends(get_question_service)
):
    """Add a question (owner or co-admin)"""
    wedding = load_wedding_ref(store, question_data.weddingId)
    authorize(principal, Action.CREATE_CHILD, ChildRef(wedding, ChildKind.QUESTION),
              "Only wedding admins can add questions")
    question = service.create_question(question_data, principal)
    return {"success": True, "message": "Question created successfully", "question": question}


@router.put("", response_model=QuestionEnvelope)
async def update_question(
    question_data: QuestionUpdate,
    principal: Principal = Depends(get_current_principal),
    store: SupabaseStore = Depends(get_store),
    service: QuestionService = Depends(get_question_service)
):
    """Edit a question"""
    question = load_row(store, QUESTIONS_TABLE, question_data.questionId, "Question")
    wedding = load_wedding_ref(store, question["wedding_id"])
    authorize(principal, Action.UPDATE_OWN, QuestionRef.from_row(question, wedding))
    question = service.update_question(question, question_data)
    return {"success": True, "message": "Question updated successfully", "question": question}


@router.delete("")
async def delete_question(
    questionId: str,
    principal: Principal = Depends(get_current_principal),
    store: SupabaseStore = Depends(get_store),
    service: QuestionService = Depends(get_question_service)
):
    """Delete a question and its answers"""
    question = load_row(store, QUESTIONS_TABLE, questionId, "Question")
    wedding = load_wedding_ref(store, question["wedding_id"])
    authorize(principal, Action.DELETE, QuestionRef.from_row(question, wedding))
    service.delete_question(questionId)
    return {"success": True, "message": "Question deleted successfully"}


@answers_router.post("", response_model=AnswerEnvelope, status_code=201)
async def create_answer(
    answer_data: AnswerCreate,
    principal: Principal = Depends(get_current_principal),
    store: SupabaseStore = Depends(get_store),
    service: QuestionService = Depends(get_question_service)
):
    """Answer a question; each principal answers a question once"""
    question = load_row(store, QUESTIONS_TABLE, answer_data.questionId, "Question")
    wedding = load_wedding_ref(store, question["wedding_id"])
    if not question.get("is_public", True) and not is_wedding_admin(principal, wedding):
        raise NotFound("Question not found")
    authorize(principal, Action.CREATE_CHILD, ChildRef(wedding, ChildKind.ANSWER))
    answer = service.create_answer(question, answer_data, principal)
    return {"success": True, "message": "Answer submitted successfully", "answer": answer}


@answers_router.put("", response_model=AnswerEnvelope)
async def update_answer(
    answer_data: AnswerUpdate,
    principal: Principal = Depends(get_current_principal),
    store: SupabaseStore = Depends(get_store),
    service: QuestionService = Depends(get_question_service)
):
    """Edit your own answer"""
    answer = load_row(store, ANSWERS_TABLE, answer_data.answerId, "Answer")
    question = load_row(store, QUESTIONS_TABLE, answer["question_id"], "Question")
    wedding = load_wedding_ref(store, question["wedding_id"])
    authorize(principal, Action.UPDATE_OWN, AnswerRef.from_row(answer, wedding), "You can only edit your own answers")
    answer = service.update_answer(answer, question, answer_data.answerText)
    return {"success": True, "message": "Answer updated successfully", "answer": answer}


@answers_router.delete("")
async def delete_answer(
    answerId: str,
    principal: Principal = Depends(get_current_principal),
    store: SupabaseStore = Depends(get_store),
    service: QuestionService = Depends(get_question_service)
):
    """Delete an answer (its author or wedding admins)"""
    answer = load_row(store, ANSWERS_TABLE, answerId, "Answer")
    question = load_row(store, QUESTIONS_TABLE, answer["question_id"], "Question")
    wedding = load_wedding_ref(store, question["wedding_id"])
    authorize(principal, Action.DELETE, AnswerRef.from_row(answer, wedding))
    service.delete_answer(answerId)
    return {"success": True, "message": "Answer deleted successfully"}
