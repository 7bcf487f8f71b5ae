from app.core.errors import Conflict, Invalid, NotFound
from app.core.policy import Principal
from app.database.supabase_client import SupabaseStore, eq, in_
from app.modules.questions.schemas import (
    AnswerCreate, QuestionCreate, QuestionType, QuestionUpdate
)
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

QUESTIONS_TABLE = "questions"
ANSWERS_TABLE = "answers"


def _options_for(question_type: QuestionType, options: Optional[List[str]]) -> Optional[List[str]]:
    """Only multiple_choice questions keep their options"""
    if question_type is not QuestionType.MULTIPLE_CHOICE:
        return None
    cleaned = [o.strip() for o in (options or []) if o and o.strip()]
    if len(cleaned) < 2:
        raise Invalid("Multiple choice questions need at least two options")
    return cleaned


class QuestionService:
    def __init__(self, store: SupabaseStore):
        self.store = store

    def list_questions(
        self,
        wedding_id: str,
        principal: Principal,
        moderator: bool,
        include_answers: bool = False,
    ) -> List[Dict[str, Any]]:
        questions = self.store.get(QUESTIONS_TABLE, [eq("wedding_id", wedding_id)], order="created_at", desc=True)
        if not moderator:
            questions = [q for q in questions if q.get("is_public", True)]
        if not include_answers or not questions:
            return questions

        answers = self.store.get(
            ANSWERS_TABLE,
            [in_("question_id", [q["id"] for q in questions])],
            order="created_at",
        )
        if not moderator:
            # Guests only ever see their own answers
            answers = [a for a in answers if a.get("answered_by") == principal.id]
        by_question: Dict[str, List[Dict[str, Any]]] = {}
        for answer in answers:
            by_question.setdefault(answer["question_id"], []).append(answer)
        return [{**q, "answers": by_question.get(q["id"], [])} for q in questions]

    def create_question(self, data: QuestionCreate, principal: Principal) -> Dict[str, Any]:
        now = datetime.now(timezone.utc).isoformat()
        return self.store.insert(QUESTIONS_TABLE, {
            "wedding_id": data.weddingId,
            "created_by": principal.id,
            "question_text": data.questionText,
            "question_type": data.questionType.value,
            "options": _options_for(data.questionType, data.options),
            "is_required": data.isRequired,
            "is_public": data.isPublic,
            "created_at": now,
            "updated_at": now,
        })

    def update_question(self, question: Dict[str, Any], data: QuestionUpdate) -> Dict[str, Any]:
        update_data: Dict[str, Any] = {}
        if data.questionText is not None:
            update_data["question_text"] = data.questionText.strip()
        if data.isRequired is not None:
            update_data["is_required"] = data.isRequired
        if data.isPublic is not None:
            update_data["is_public"] = data.isPublic
        if data.questionType is not None or data.options is not None:
            question_type = data.questionType or QuestionType(question["question_type"])
            update_data["question_type"] = question_type.value
            update_data["options"] = _options_for(
                question_type, data.options if data.options is not None else question.get("options")
            )
        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()

        rows = self.store.update(QUESTIONS_TABLE, [eq("id", question["id"])], update_data)
        if not rows:
            raise NotFound("Question not found")
        return rows[0]

    def delete_question(self, question_id: str) -> bool:
        return self.store.delete(QUESTIONS_TABLE, [eq("id", question_id)]) > 0

    def _check_answer(self, question: Dict[str, Any], answer_text: str) -> None:
        if question.get("question_type") == QuestionType.MULTIPLE_CHOICE.value:
            if answer_text not in (question.get("options") or []):
                raise Invalid("Answer must be one of the question's options")

    def create_answer(self, question: Dict[str, Any], data: AnswerCreate, principal: Principal) -> Dict[str, Any]:
        """One answer per (question, principal)"""
        existing = self.store.get(ANSWERS_TABLE, [
            eq("question_id", question["id"]),
            eq("answered_by", principal.id),
        ])
        if existing:
            raise Conflict("You have already answered this question")
        self._check_answer(question, data.answerText)

        now = datetime.now(timezone.utc).isoformat()
        answer = self.store.insert(ANSWERS_TABLE, {
            "question_id": question["id"],
            "wedding_id": question["wedding_id"],
            "answered_by": principal.id,
            "answer_text": data.answerText,
            "created_at": now,
            "updated_at": now,
        })
        logger.info(f"Answer {answer['id']} recorded for question {question['id']}")
        return answer

    def update_answer(self, answer: Dict[str, Any], question: Dict[str, Any], answer_text: str) -> Dict[str, Any]:
        answer_text = answer_text.strip()
        if not answer_text:
            raise Invalid("Answer text is required")
        self._check_answer(question, answer_text)
        rows = self.store.update(ANSWERS_TABLE, [eq("id", answer["id"])], {
            "answer_text": answer_text,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        })
        if not rows:
            raise NotFound("Answer not found")
        return rows[0]

    def delete_answer(self, answer_id: str) -> bool:
        return self.store.delete(ANSWERS_TABLE, [eq("id", answer_id)]) > 0
