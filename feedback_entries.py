"""
Feedback entry shapes stored against an advisor.

Two kinds of entry share one feedback history:

- ``SurveyFeedback``: the structured six-question form (q1..q5 ratings plus
  an optional comment).
- ``RatingFeedback``: the simple form (one overall rating plus optional
  comments).

Rows carry a ``kind`` column so the read layer can build the right variant
and consumers can dispatch on the type instead of probing for fields.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from api_errors import ValidationError


SURVEY_KIND = "survey"
RATING_KIND = "rating"

RATING_MIN = 1
RATING_MAX = 5

QUESTION_KEYS = ("q1", "q2", "q3", "q4", "q5")

SURVEY_QUESTIONS = (
    ("q1", "How satisfied were you with the level of personal attention you received?"),
    ("q2", "How would you rate the Client Advisor's professionalism and demeanor?"),
    ("q3", "Did the Client Advisor demonstrate expert product knowledge and recommendations?"),
    ("q4", "How well did the Client Advisor understand your needs and preferences?"),
    ("q5", "Overall, how satisfied were you with your experience with the Client Advisor?"),
)

COMMENT_QUESTION = (
    "Please leave any additional comments, suggestions, or feedback "
    "for the Client Advisor (optional):"
)


@dataclass(frozen=True)
class SurveyFeedback:
    submitted_at: datetime
    ratings: Tuple[Optional[int], ...]
    comment: str = ""
    kind: str = field(default=SURVEY_KIND, init=False)

    @property
    def has_all_ratings(self):
        return len(self.ratings) == len(QUESTION_KEYS) and all(
            value is not None for value in self.ratings
        )

    @property
    def text(self):
        return self.comment

    def to_dict(self):
        data = {"kind": self.kind, "date": self.submitted_at.isoformat()}
        for key, value in zip(QUESTION_KEYS, self.ratings):
            data[key] = value
        data["comment"] = self.comment
        return data


@dataclass(frozen=True)
class RatingFeedback:
    submitted_at: datetime
    rating: Optional[int]
    comments: str = ""
    kind: str = field(default=RATING_KIND, init=False)

    @property
    def text(self):
        return self.comments

    def to_dict(self):
        return {
            "kind": self.kind,
            "date": self.submitted_at.isoformat(),
            "rating": self.rating,
            "comments": self.comments,
        }


def parse_rating(value, field_name):
    """Parse a submitted rating, enforcing the 1-5 scale."""
    text = "" if value is None else str(value).strip()
    if not text:
        raise ValidationError(f"{field_name} is required")
    try:
        rating = int(text)
    except ValueError:
        raise ValidationError(f"{field_name} must be a whole number") from None
    if not RATING_MIN <= rating <= RATING_MAX:
        raise ValidationError(
            f"{field_name} must be between {RATING_MIN} and {RATING_MAX}"
        )
    return rating


def entry_from_row(row):
    """Build the feedback variant stored in a ``feedback`` table row."""
    submitted_at = datetime.fromisoformat(row["submitted_at"])
    kind = row["kind"]
    if kind == SURVEY_KIND:
        return SurveyFeedback(
            submitted_at=submitted_at,
            ratings=tuple(row[key] for key in QUESTION_KEYS),
            comment=row["comment"] or "",
        )
    if kind == RATING_KIND:
        return RatingFeedback(
            submitted_at=submitted_at,
            rating=row["rating"],
            comments=row["comment"] or "",
        )
    raise ValueError(f"Unknown feedback kind: {kind!r}")
