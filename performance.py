"""
Performance aggregation over an advisor's feedback history.

The detailed view averages the five survey questions; the manager summary
averages the overall rating from the simple form. The two views read
different fields and are deliberately reported separately.
"""

from decimal import ROUND_HALF_UP, Decimal

from feedback_entries import QUESTION_KEYS, RatingFeedback, SurveyFeedback


NO_DATA = "No ratings yet"
ONE_DECIMAL = Decimal("0.1")


def _average(values):
    if not values:
        return NO_DATA
    # half-way means round up: 4.25 -> 4.3
    mean = Decimal(sum(values)) / Decimal(len(values))
    return float(mean.quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP))


def _comments(entries):
    comments = []
    for entry in entries:
        text = (entry.text or "").strip()
        if text:
            comments.append(text)
    return comments


def summarize_survey(entries):
    """Per-question averages and comments for one advisor.

    Only survey entries with all five ratings count towards ``count`` and
    the averages; comments are collected from every entry in order.
    """
    complete = [
        entry for entry in entries
        if isinstance(entry, SurveyFeedback) and entry.has_all_ratings
    ]
    averages = {}
    for index, key in enumerate(QUESTION_KEYS):
        averages[key] = _average([entry.ratings[index] for entry in complete])

    return {
        "count": len(complete),
        "averageRatings": averages,
        "comments": _comments(entries),
    }


def overall_rating(entries):
    ratings = [
        entry.rating for entry in entries
        if isinstance(entry, RatingFeedback) and entry.rating is not None
    ]
    return _average(ratings)


def advisor_performance(advisor, entries):
    summary = summarize_survey(entries)
    return {
        "id": advisor["id"],
        "name": advisor["name"],
        "totalFeedback": len(entries),
        "count": summary["count"],
        "averageRatings": summary["averageRatings"],
        "comments": summary["comments"],
        "feedback": [entry.to_dict() for entry in entries],
    }


def advisor_summary(advisor, entries):
    return {
        "id": advisor["id"],
        "name": advisor["name"],
        "totalFeedback": len(entries),
        "averageRating": overall_rating(entries),
    }
