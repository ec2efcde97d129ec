"""
Dosha Effects and Constitution Assessment.

Tallies how a set of foods affects each dosha, picks foods that pacify a
given dosha, and scores the constitution questionnaire.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Sequence

from .foods import Dosha, DoshaEffect, Food, classify_effect

logger = logging.getLogger(__name__)


@dataclass
class DoshaTally:
    """Counts of each effect on one dosha."""

    increase: int = 0
    decrease: int = 0
    neutral: int = 0

    def add(self, effect: DoshaEffect) -> None:
        effect = classify_effect(effect)
        if effect == DoshaEffect.INCREASE:
            self.increase += 1
        elif effect == DoshaEffect.DECREASE:
            self.decrease += 1
        else:
            self.neutral += 1

    def to_dict(self) -> dict:
        return {"increase": self.increase, "decrease": self.decrease, "neutral": self.neutral}


def aggregate_dosha_effects(foods: Iterable[Food]) -> Dict[Dosha, DoshaTally]:
    """
    Tally food effects for vata, pitta and kapha.

    A food without any effect mapping adds one neutral count to every
    dosha, so each food is counted exactly once per dosha.
    """
    tallies = {dosha: DoshaTally() for dosha in Dosha}
    for food in foods:
        for dosha in Dosha:
            tallies[dosha].add(food.dosha_effects.get(dosha))
    return tallies


def tallies_to_dict(tallies: Mapping[Dosha, DoshaTally]) -> Dict[str, dict]:
    return {dosha.value: tally.to_dict() for dosha, tally in tallies.items()}


def balancing_foods(foods: Sequence[Food], dosha: Dosha, fallback: int = 10) -> List[Food]:
    """Foods that decrease ``dosha``, or the first ``fallback`` foods if none do."""
    dosha = Dosha(dosha)
    matches = [
        food for food in foods
        if classify_effect(food.dosha_effects.get(dosha)) == DoshaEffect.DECREASE
    ]
    if matches:
        return matches
    logger.info(f"[DOSHA] No foods decrease {dosha.value}, falling back to first {fallback}")
    return list(foods[:fallback])


# ============================================================================
# Constitution questionnaire
# ============================================================================


@dataclass(frozen=True)
class QuizOption:
    text: str
    dosha: Dosha


@dataclass(frozen=True)
class QuizQuestion:
    id: str
    question: str
    options: tuple

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "question": self.question,
            "options": [{"text": o.text, "dosha": o.dosha.value} for o in self.options],
        }


def _question(qid: str, text: str, vata: str, pitta: str, kapha: str) -> QuizQuestion:
    return QuizQuestion(
        id=qid,
        question=text,
        options=(
            QuizOption(vata, Dosha.VATA),
            QuizOption(pitta, Dosha.PITTA),
            QuizOption(kapha, Dosha.KAPHA),
        ),
    )


QUIZ_QUESTIONS = (
    _question(
        "body_frame", "What best describes your body frame?",
        "Thin, light, and lean with prominent joints",
        "Medium build with moderate muscle tone",
        "Large, solid frame with tendency to gain weight",
    ),
    _question(
        "skin_type", "How would you describe your skin?",
        "Dry, rough, thin, and prone to cracking",
        "Warm, oily, prone to rashes or acne",
        "Thick, smooth, moist, and cool",
    ),
    _question(
        "hair_type", "What is your hair like?",
        "Dry, brittle, frizzy, or thin",
        "Fine, straight, prone to premature graying",
        "Thick, wavy, lustrous, and oily",
    ),
    _question(
        "appetite", "How would you describe your appetite?",
        "Variable - sometimes hungry, sometimes not",
        "Strong - I get irritable if I miss meals",
        "Steady - I can skip meals without discomfort",
    ),
    _question(
        "digestion", "How is your digestion?",
        "Irregular with gas and bloating",
        "Quick with occasional heartburn",
        "Slow but steady",
    ),
    _question(
        "sleep_pattern", "What is your sleep pattern like?",
        "Light sleeper, wake up easily, interrupted",
        "Moderate, fall asleep easily but may wake hot",
        "Deep and long, hard to wake up",
    ),
    _question(
        "temperature", "How do you respond to temperature?",
        "Cold hands/feet, prefer warmth",
        "Usually warm, prefer cool environments",
        "Tolerate most temperatures well",
    ),
    _question(
        "mental_activity", "How would you describe your mental activity?",
        "Quick, restless, creative, many ideas",
        "Sharp, focused, analytical, determined",
        "Calm, steady, methodical, good memory",
    ),
    _question(
        "stress_response", "How do you typically respond to stress?",
        "Anxiety, worry, fear",
        "Irritability, anger, frustration",
        "Withdrawal, comfort eating, lethargy",
    ),
    _question(
        "energy_levels", "How are your energy levels throughout the day?",
        "Variable - bursts of energy then fatigue",
        "High and sustained until I crash",
        "Steady and enduring throughout",
    ),
)

DOSHA_GUIDANCE = {
    Dosha.VATA: {
        "description": "Vata types are creative, energetic, and quick-thinking. "
                       "They benefit from warm, grounding, nourishing foods.",
        "foods": ["Warm soups", "Cooked grains", "Root vegetables", "Ghee", "Warm milk", "Sweet fruits"],
    },
    Dosha.PITTA: {
        "description": "Pitta types are focused, determined, and driven. "
                       "They benefit from cooling, calming foods that reduce heat.",
        "foods": ["Cooling vegetables", "Sweet fruits", "Coconut", "Mint", "Cucumber", "Dairy"],
    },
    Dosha.KAPHA: {
        "description": "Kapha types are calm, steady, and nurturing. "
                       "They benefit from light, warming, stimulating foods.",
        "foods": ["Light grains", "Spicy foods", "Leafy greens", "Legumes", "Honey", "Ginger"],
    },
}


class IncompleteQuizError(ValueError):
    """Raised when a questionnaire is submitted with unanswered questions."""

    def __init__(self, missing: List[str]):
        self.missing = missing
        super().__init__("Please answer all questions before submitting")


def score_quiz(answers: Mapping[str, str]) -> Dict[Dosha, int]:
    """
    Count answers per dosha.

    Args:
        answers: question id -> dosha chosen for that question

    Raises:
        IncompleteQuizError: if any question is unanswered
        ValueError: for an unknown question id or dosha
    """
    known_ids = {q.id for q in QUIZ_QUESTIONS}
    unknown = set(answers) - known_ids
    if unknown:
        raise ValueError(f"Unknown question ids: {sorted(unknown)}")

    missing = [q.id for q in QUIZ_QUESTIONS if q.id not in answers]
    if missing:
        raise IncompleteQuizError(missing)

    scores = {dosha: 0 for dosha in Dosha}
    for dosha in answers.values():
        scores[Dosha(dosha)] += 1
    return scores


def dominant_dosha(scores: Mapping[Dosha, int]) -> str:
    """Name the highest-scoring dosha; ties are joined, e.g. "Vata-Pitta"."""
    top = max(scores.values())
    return "-".join(dosha.value.capitalize() for dosha in Dosha if scores.get(dosha, 0) == top)
