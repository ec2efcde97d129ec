"""Dosha assessment quiz API routes."""
import logging
from fastapi import APIRouter, Depends, HTTPException

from ayurveda import DOSHA_GUIDANCE, QUIZ_QUESTIONS, Dosha, dominant_dosha, score_quiz
from ayurveda.dosha import IncompleteQuizError

from ..models.dashboard import QuizResult, QuizSubmission
from ..services.session import SessionContext, get_session_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dosha-quiz", tags=["Dosha Quiz"])


@router.get("/questions")
async def get_questions():
    """The questionnaire; each option maps to one dosha."""
    return [question.to_dict() for question in QUIZ_QUESTIONS]


@router.post("/submit", response_model=QuizResult)
async def submit_quiz(
    body: QuizSubmission,
    session: SessionContext = Depends(get_session_context),
):
    """
    Score a completed questionnaire.

    Percentages are each dosha's share of all answers. When two or more
    doshas tie for the top score the result names all of them.
    """
    try:
        scores = score_quiz(body.answers)
    except IncompleteQuizError as e:
        raise HTTPException(
            status_code=400,
            detail={"message": str(e), "missing": e.missing},
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    total = sum(scores.values())
    dominant = dominant_dosha(scores)
    # Guidance follows the first named dosha of a tie
    guidance = DOSHA_GUIDANCE[Dosha(dominant.split("-")[0].lower())]

    logger.info(f"[DOSHA] Quiz scored for {session.user_id}: {dominant}")
    return QuizResult(
        scores={dosha.value: score for dosha, score in scores.items()},
        percentages={dosha.value: round(score / total * 100) for dosha, score in scores.items()},
        dominant_dosha=dominant,
        description=guidance["description"],
        recommended_foods=list(guidance["foods"]),
    )
