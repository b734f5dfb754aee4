"""
Answer catalog service
Reusable answers owned by a teacher; questions embed copies of them
"""
import logging
from typing import List

from sqlalchemy.orm import Session

from exambank.exceptions import InvalidAnswerSet, RecordUnavailable
from exambank.models import Answer
from exambank.repository import Repository
from exambank.schemas.answer import AnswerBase, AnswersCreateRequest, AnswerUpdate
from exambank.schemas.common import Caller
from exambank.services.access import ensure_owner, is_owner
from exambank.utils.fill_in import PLACEHOLDER, split_segments

logger = logging.getLogger(__name__)

answers_repo = Repository(Answer, "Answer")


class AnswerService:

    def create_many(self, db: Session, data: AnswersCreateRequest, caller: Caller) -> List[Answer]:
        for answer in data.answers:
            if PLACEHOLDER in answer.value:
                split_segments(answer.value)

        answers = [
            answers_repo.insert(db, Answer(**answer.model_dump(), owner_id=caller.id))
            for answer in data.answers
        ]
        db.commit()

        logger.info(f"Created {len(answers)} catalog answer(s) for {caller.id}")
        return answers

    def get(self, db: Session, answer_id: str, caller: Caller) -> Answer:
        answer = answers_repo.get(db, answer_id)
        if not is_owner(answer, caller):
            raise RecordUnavailable(f"Answer {answer_id}")
        return answer

    def list(self, db: Session, caller: Caller, skip: int = 0, limit: int = 100) -> List[Answer]:
        return answers_repo.find_many(
            db, Answer.owner_id == caller.id, skip=skip, limit=limit, order_by=Answer.created_at.desc()
        )

    def update(self, db: Session, answer_id: str, data: AnswerUpdate, caller: Caller) -> Answer:
        answer = answers_repo.get(db, answer_id)
        ensure_owner(answer, caller, "Answer")

        patch = data.model_dump(exclude_unset=True)
        merged = {
            "value": answer.value,
            "score": answer.score,
            "is_correct": answer.is_correct,
            "remark": answer.remark,
            **patch,
        }
        if merged["is_correct"] and merged["score"] is None:
            raise InvalidAnswerSet("A correct answer must carry a score")
        if merged["value"] and PLACEHOLDER in merged["value"]:
            split_segments(merged["value"])

        for field, value in patch.items():
            setattr(answer, field, value)

        db.commit()
        db.refresh(answer)
        return answer

    def delete_many(self, db: Session, answer_ids: List[str], caller: Caller) -> int:
        answers = [answers_repo.get(db, answer_id) for answer_id in dict.fromkeys(answer_ids)]
        for answer in answers:
            ensure_owner(answer, caller, "Answer")

        deleted = answers_repo.delete_many(db, [answer.id for answer in answers])
        db.commit()

        logger.info(f"Deleted {deleted} catalog answer(s)")
        return deleted

    def copy_for_question(self, db: Session, answer_ids: List[str], caller: Caller) -> List[AnswerBase]:
        """Value copies of catalog answers, for embedding in a question"""
        return [
            AnswerBase(
                value=answer.value,
                score=answer.score,
                is_correct=answer.is_correct,
                remark=answer.remark,
            )
            for answer in (self.get(db, answer_id, caller) for answer_id in dict.fromkeys(answer_ids))
        ]


# Global instance
answer_service = AnswerService()
