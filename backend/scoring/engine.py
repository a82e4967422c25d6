from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Sequence

from scoring.bank import CAREER_TABLE, QUESTIONS

EXPERIENCE_PER_ASSESSMENT = 150


class AssessmentValidationError(ValueError):
    """Responses don't line up with the question bank."""


class UnknownCategoryError(LookupError):
    """A category reached the engine that the career table doesn't know."""


@dataclass(frozen=True)
class Response:
    question_id: int
    answer: str
    category: str


@dataclass(frozen=True)
class RecommendedCareer:
    title: str
    description: str
    match_percentage: int


@dataclass(frozen=True)
class CareerProfile:
    dominant_type: str
    strengths: List[str] = field(default_factory=list)
    recommended_careers: List[RecommendedCareer] = field(default_factory=list)
    suggested_study_areas: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "dominantType": self.dominant_type,
            "strengths": list(self.strengths),
            "recommendedCareers": [
                {"title": c.title, "description": c.description, "matchPercentage": c.match_percentage}
                for c in self.recommended_careers
            ],
            "suggestedStudyAreas": list(self.suggested_study_areas),
        }


@dataclass(frozen=True)
class ScoreResult:
    career_profile: CareerProfile
    experience_gained: int
    # (question text, answer, category) in question-bank order
    responses: List[tuple] = field(default_factory=list)


class Engine:
    """Rule-based scorer: majority category -> canned career profile.

    The question bank and the career table are handed in at construction and
    never mutated. Defaults are the built-in bank and table.
    """

    def __init__(self, questions: Sequence[Mapping] = QUESTIONS, career_table: Mapping = CAREER_TABLE):
        self.questions = questions
        self.career_table = career_table
        self._question_text = {q["id"]: q["question"] for q in questions}

    def dominant_category(self, categories: Sequence[str]) -> str:
        # dicts keep insertion order, and max() returns the first maximal key,
        # so ties go to the category seen earliest
        counts: Dict[str, int] = {}
        for c in categories:
            counts[c] = counts.get(c, 0) + 1
        if not counts:
            raise AssessmentValidationError("No responses to score")
        return max(counts, key=counts.get)

    def profile_for(self, category: str) -> CareerProfile:
        try:
            entry = self.career_table[category]
        except KeyError:
            raise UnknownCategoryError(f"No career profile for category {category!r}") from None
        return CareerProfile(
            dominant_type=category,
            strengths=list(entry["strengths"]),
            recommended_careers=[
                RecommendedCareer(c["title"], c["description"], int(c["matchPercentage"]))
                for c in entry["careers"]
            ],
            suggested_study_areas=list(entry["studyAreas"]),
        )

    def validate(self, responses: Sequence[Response]) -> None:
        expected = len(self.questions)
        if len(responses) != expected:
            raise AssessmentValidationError(f"All {expected} questions must be answered")
        seen = set()
        for r in responses:
            if r.question_id not in self._question_text:
                raise AssessmentValidationError(f"Unknown question id {r.question_id}")
            if r.question_id in seen:
                raise AssessmentValidationError(f"Question {r.question_id} answered more than once")
            seen.add(r.question_id)

    def score(self, responses: Sequence[Response]) -> ScoreResult:
        self.validate(responses)
        for r in responses:
            if r.category not in self.career_table:
                raise UnknownCategoryError(f"No career profile for category {r.category!r}")
        profile = self.profile_for(self.dominant_category([r.category for r in responses]))
        by_question = {r.question_id: r for r in responses}
        ordered = [
            (self._question_text[q["id"]], by_question[q["id"]].answer, by_question[q["id"]].category)
            for q in self.questions
        ]
        return ScoreResult(profile, EXPERIENCE_PER_ASSESSMENT, ordered)
