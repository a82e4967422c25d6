"""Assessment submission and the checks around it.

Submission inserts the result and updates the owning user in one transaction.
The user update is conditional on the row still looking the way it did when
it was read (not completed, same experience). Two racing submissions can't
both land, and a crash between the two writes can't leave half of them behind.
"""
import logging
from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError

from models import db, User, AssessmentResult, utcnow
from scoring.bank import CATEGORIES
from scoring.engine import AssessmentValidationError, Response
from scoring.leveling import level_for

logger = logging.getLogger(__name__)


class AssessmentConflictError(Exception):
    """The user already completed the assessment, or changed underneath us."""


@dataclass
class SubmissionOutcome:
    result: AssessmentResult
    experience_gained: int
    new_level: int
    total_experience: int


def parse_responses(payload):
    """Turn the request's `responses` list into engine Responses.

    Raises AssessmentValidationError on anything the user can fix.
    """
    if not isinstance(payload, list) or not payload:
        raise AssessmentValidationError("responses must be a non-empty list")
    out = []
    for i, item in enumerate(payload):
        if not isinstance(item, dict):
            raise AssessmentValidationError(f"response {i} must be an object")
        qid = item.get("questionId")
        answer = item.get("answer")
        category = item.get("category")
        if isinstance(qid, bool) or not isinstance(qid, int):
            raise AssessmentValidationError(f"response {i} is missing an integer questionId")
        if not isinstance(answer, str) or not answer.strip():
            raise AssessmentValidationError(f"response {i} is missing an answer")
        if category not in CATEGORIES:
            raise AssessmentValidationError(f"response {i} has an invalid category")
        out.append(Response(question_id=qid, answer=answer, category=category))
    return out


def submit_assessment(user, responses, engine):
    scored = engine.score(responses)
    if user.assessment_completed:
        raise AssessmentConflictError("Assessment already completed")

    seen = user.experience
    total = seen + scored.experience_gained
    new_level = level_for(total)
    profile = scored.career_profile

    result = AssessmentResult(
        user_id=user.id,
        responses=[{"question": q, "answer": a, "category": c} for q, a, c in scored.responses],
        career_profile=profile.to_dict(),
        dominant_type=profile.dominant_type,
        experience_gained=scored.experience_gained,
    )
    try:
        db.session.add(result)
        db.session.flush()
        stmt = (
            update(User)
            .where(User.id == user.id, User.assessment_completed.is_(False), User.experience == seen)
            .values(
                experience=total,
                level=new_level,
                assessment_completed=True,
                assessment_result_id=result.id,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        matched = db.session.execute(stmt).rowcount
        if matched != 1:
            db.session.rollback()
            logger.warning("assessment submit conflict for user %s", user.id)
            raise AssessmentConflictError("Assessment already completed")
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise

    logger.info("user %s completed assessment: %s, level %s", user.id, profile.dominant_type, new_level)
    return SubmissionOutcome(result, scored.experience_gained, new_level, total)


def find_divergent_users():
    """Users whose completion flag and stored results disagree.

    Only reports. Repairing is left to an operator.
    """
    result_ids = set(db.session.scalars(select(AssessmentResult.id)))
    owners = set(db.session.scalars(select(AssessmentResult.user_id).distinct()))
    findings = []
    for user in User.query.order_by(User.id.asc()).all():
        issue = None
        if user.assessment_completed and user.assessment_result_id not in result_ids:
            issue = "completed_without_result"
        elif not user.assessment_completed and user.id in owners:
            issue = "result_without_completion"
        if issue:
            logger.warning("integrity: user %s (%s) %s", user.id, user.email, issue)
            findings.append({"userId": user.id, "email": user.email, "issue": issue})
    return findings
