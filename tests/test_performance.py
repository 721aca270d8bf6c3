from datetime import datetime, timezone

from conftest import submit_survey
from feedback_entries import RatingFeedback, SurveyFeedback
from performance import NO_DATA, advisor_summary, overall_rating, summarize_survey


NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def survey(*ratings, comment=""):
    return SurveyFeedback(submitted_at=NOW, ratings=tuple(ratings), comment=comment)


def test_averages_over_complete_entries():
    summary = summarize_survey([survey(5, 5, 5, 5, 5), survey(1, 1, 1, 1, 1)])

    assert summary["count"] == 2
    assert summary["averageRatings"] == {f"q{i}": 3.0 for i in range(1, 6)}


def test_averages_round_to_one_decimal():
    summary = summarize_survey([survey(5, 4, 3, 2, 1), survey(4, 4, 4, 4, 4), survey(4, 4, 4, 4, 4)])

    assert summary["averageRatings"]["q1"] == 4.3
    assert summary["averageRatings"]["q5"] == 3.0


def test_half_way_means_round_up():
    summary = summarize_survey([
        survey(5, 1, 1, 1, 1),
        survey(5, 1, 1, 1, 1),
        survey(4, 1, 1, 1, 2),
        survey(3, 2, 1, 1, 1),
    ])

    assert summary["averageRatings"]["q1"] == 4.3
    assert summary["averageRatings"]["q2"] == 1.3
    assert summary["averageRatings"]["q5"] == 1.3

    ratings = [RatingFeedback(submitted_at=NOW, rating=value) for value in (1, 1, 1, 2)]
    assert overall_rating(ratings) == 1.3


def test_incomplete_entry_excluded_but_comment_kept():
    entries = [
        survey(4, 4, 4, 4, 4, comment="great"),
        survey(2, None, 2, 2, 2, comment="partial"),
    ]
    summary = summarize_survey(entries)

    assert summary["count"] == 1
    assert summary["averageRatings"]["q2"] == 4.0
    assert summary["comments"] == ["great", "partial"]


def test_empty_history_gives_no_data_everywhere():
    summary = summarize_survey([])

    assert summary["count"] == 0
    assert all(value == NO_DATA for value in summary["averageRatings"].values())
    assert summary["comments"] == []
    assert overall_rating([]) == NO_DATA


def test_rating_entries_do_not_affect_question_averages():
    entries = [
        RatingFeedback(submitted_at=NOW, rating=1, comments="slow"),
        survey(5, 5, 5, 5, 5),
    ]
    summary = summarize_survey(entries)

    assert summary["count"] == 1
    assert summary["averageRatings"]["q1"] == 5.0
    assert summary["comments"] == ["slow"]


def test_blank_comments_are_skipped():
    summary = summarize_survey([survey(3, 3, 3, 3, 3, comment="   ")])
    assert summary["comments"] == []


def test_overall_rating_uses_simple_ratings_only():
    entries = [
        RatingFeedback(submitted_at=NOW, rating=4),
        RatingFeedback(submitted_at=NOW, rating=5),
        survey(1, 1, 1, 1, 1),
    ]
    assert overall_rating(entries) == 4.5

    summary = advisor_summary({"id": "abc", "name": "Alice"}, entries)
    assert summary == {"id": "abc", "name": "Alice", "totalFeedback": 3, "averageRating": 4.5}


def test_performance_endpoint_aggregates_submissions(client, advisor):
    submit_survey(client, advisor["id"], [5, 5, 5, 5, 5], comment="Excellent")
    submit_survey(client, advisor["id"], [1, 1, 1, 1, 1])
    client.post("/submit-feedback", data={"advisorId": advisor["id"], "rating": "3", "comments": "ok"})

    response = client.get(f"/api/advisors/performance/{advisor['id']}", headers=advisor["headers"])
    body = response.get_json()

    assert response.status_code == 200
    assert body["count"] == 2
    assert body["totalFeedback"] == 3
    assert body["averageRatings"] == {f"q{i}": 3.0 for i in range(1, 6)}
    assert body["comments"] == ["Excellent", "ok"]
    assert [entry["kind"] for entry in body["feedback"]] == ["survey", "survey", "rating"]


def test_performance_endpoint_without_feedback(client, advisor):
    response = client.get(f"/api/advisors/performance/{advisor['id']}", headers=advisor["headers"])
    body = response.get_json()

    assert response.status_code == 200
    assert body["count"] == 0
    assert set(body["averageRatings"].values()) == {NO_DATA}


def test_performance_of_other_advisor_is_forbidden(client, advisor, other_advisor, manager):
    url = f"/api/advisors/performance/{other_advisor['id']}"

    assert client.get(url, headers=advisor["headers"]).status_code == 403
    assert client.get(url, headers=manager["headers"]).status_code == 200


def test_performance_requires_token(client, advisor):
    response = client.get(f"/api/advisors/performance/{advisor['id']}")
    assert response.status_code == 401


def test_performance_invalid_and_unknown_ids(client, manager):
    bad = client.get("/api/advisors/performance/not-an-id", headers=manager["headers"])
    missing = client.get("/api/advisors/performance/" + "0" * 32, headers=manager["headers"])

    assert bad.status_code == 400
    assert missing.status_code == 404


def test_all_advisors_summary_for_manager(client, advisor, other_advisor, manager):
    client.post("/submit-feedback", data={"advisorId": advisor["id"], "rating": "4"})
    client.post("/submit-feedback", data={"advisorId": advisor["id"], "rating": "5"})

    response = client.get("/api/advisors/performance", headers=manager["headers"])
    body = {row["id"]: row for row in response.get_json()}

    assert response.status_code == 200
    assert set(body) == {advisor["id"], other_advisor["id"]}
    assert body[advisor["id"]]["averageRating"] == 4.5
    assert body[advisor["id"]]["totalFeedback"] == 2
    assert body[other_advisor["id"]]["averageRating"] == NO_DATA


def test_all_advisors_summary_is_manager_only(client, advisor):
    response = client.get("/api/advisors/performance", headers=advisor["headers"])
    assert response.status_code == 403


def test_all_advisors_summary_without_advisors(client, manager):
    response = client.get("/api/advisors/performance", headers=manager["headers"])
    assert response.status_code == 404
    assert response.get_json() == {"message": "No advisors found"}
