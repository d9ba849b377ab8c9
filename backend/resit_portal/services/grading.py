"""
Grading Service - maps raw grade tokens to letter grades and resit eligibility.

Pure functions only; nothing here touches the database.

Letter bands (inclusive, highest first):
    90-100 AA, 85-89 BA, 80-84 BB, 75-79 CB, 70-74 CC,
    65-69 DC, 60-64 DD, 50-59 FD, 0-49 FF

The literal "DZ" (did not attend, any case) has no numeric score.
Fractional scores fall into the band whose lower bound they reach,
so 89.5 is BA.
"""

import math
from typing import List, NamedTuple, Optional

from resit_portal.errors import ValidationError

DID_NOT_ATTEND = "DZ"

# (lower bound, letter), highest first
GRADE_BANDS = [
    (90, "AA"),
    (85, "BA"),
    (80, "BB"),
    (75, "CB"),
    (70, "CC"),
    (65, "DC"),
    (60, "DD"),
    (50, "FD"),
    (0, "FF"),
]

RESIT_ELIGIBLE_LETTERS = frozenset({"FF", "FD", "DD", "DC"})

GPA_POINTS = {
    "AA": 4.0,
    "BA": 3.5,
    "BB": 3.0,
    "CB": 2.5,
    "CC": 2.0,
    "DC": 1.5,
    "DD": 1.0,
    "FD": 0.5,
    "FF": 0.0,
}

LETTER_GRADES = [letter for _, letter in GRADE_BANDS] + [DID_NOT_ATTEND]


class GradeResult(NamedTuple):
    """A classified grade: numeric score (None for DZ) and its letter."""
    score: Optional[float]
    letter: str


def letter_for_score(score: float) -> str:
    """Map a numeric score in [0, 100] to its letter grade."""
    if score < 0 or score > 100:
        raise ValidationError("invalid grade")
    for lower_bound, letter in GRADE_BANDS:
        if score >= lower_bound:
            return letter
    # unreachable: the last band starts at 0
    raise ValidationError("invalid grade")


def classify_grade(token) -> GradeResult:
    """
    Validate a raw grade token and classify it.

    Accepts "DZ" in any case, or a number (int/float or numeric string)
    in [0, 100]. Anything else raises ValidationError("invalid grade").
    """
    if token is None or isinstance(token, bool):
        raise ValidationError("invalid grade")

    if isinstance(token, str):
        text = token.strip()
        if text.upper() == DID_NOT_ATTEND:
            return GradeResult(score=None, letter=DID_NOT_ATTEND)
        try:
            score = float(text)
        except ValueError:
            raise ValidationError("invalid grade")
    elif isinstance(token, (int, float)):
        score = float(token)
    else:
        raise ValidationError("invalid grade")

    if math.isnan(score) or math.isinf(score):
        raise ValidationError("invalid grade")

    return GradeResult(score=score, letter=letter_for_score(score))


def is_resit_eligible(letter: Optional[str]) -> bool:
    """True iff the letter grade permits resit registration."""
    return letter in RESIT_ELIGIBLE_LETTERS


def grade_points(letter: str) -> Optional[float]:
    """GPA points for a letter, or None when the letter does not count (DZ)."""
    return GPA_POINTS.get(letter)


def compute_gpa(letters: List[str]) -> Optional[float]:
    """
    Mean grade points over every counted letter, rounded to two decimals.

    DZ and unknown letters are skipped. Returns None when nothing counts.
    """
    points = [GPA_POINTS[letter] for letter in letters if letter in GPA_POINTS]
    if not points:
        return None
    return round(sum(points) / len(points), 2)
