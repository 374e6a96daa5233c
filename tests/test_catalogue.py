# =============================================================================
# tests/test_catalogue.py - Request Models, Search Ranking and Analytics
# =============================================================================

from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from intellecta.courses.analytics import progress_distribution, summarize_enrollments
from intellecta.courses.database import relevance_score, sort_search_results, category_facets
from intellecta.courses.models import CourseCreate
from intellecta.lessons.models import LessonCreate, QuizQuestion, QuizSubmission
from intellecta.users.models import ChangePasswordRequest, RegisterRequest

NOW = datetime(2026, 6, 1)


class TestModels:
    """Validation rules on request bodies"""

    def test_course_categories_must_not_be_blank(self):
        with pytest.raises(ValidationError):
            CourseCreate(title="Python", description="Intro", categories=["  "])

    def test_course_categories_are_trimmed(self):
        course = CourseCreate(title="Python", description="Intro", categories=[" Web "])
        assert course.categories == ["Web"]

    def test_quiz_answer_index_in_range(self):
        with pytest.raises(ValidationError):
            QuizQuestion(question="?", options=["a", "b"], correct_answer=2)

    def test_quiz_submission_rejects_negative(self):
        with pytest.raises(ValidationError):
            QuizSubmission(answers=[0, -1])

    def test_unknown_content_type(self):
        with pytest.raises(ValidationError):
            LessonCreate(
                topic_id="TOPIC_1",
                title="Intro",
                description="An introduction lesson.",
                order=0,
                content_groups=[{"title": "A", "order": 0, "contents": [
                    {"type": "hologram", "content": "x", "order": 0},
                ]}],
            )

    def test_password_confirmation(self):
        with pytest.raises(ValidationError):
            ChangePasswordRequest(
                current_password="Password123",
                new_password="BetterPass9",
                confirm_password="BetterPass8",
            )

    def test_register_strips_name(self):
        request = RegisterRequest(name="  Linus ", email="linus@kodr.io", password="Password123")
        assert request.name == "Linus"


def course(title, categories=(), description="", rating=0.0, enrollments=0, age_days=0):
    return {
        "title": title,
        "categories": list(categories),
        "description": description,
        "rating_stats": {"average_rating": rating},
        "enrollment_count": enrollments,
        "created_at": NOW - timedelta(days=age_days),
    }


class TestSearch:

    def test_relevance_weights(self):
        assert relevance_score(course("Python"), "python") == 10
        assert relevance_score(course("Python Basics"), "python") == 5
        assert relevance_score(course("Web", categories=["Python"]), "python") == 3
        assert relevance_score(course("Web", description="uses python"), "python") == 1
        assert relevance_score(course("Web"), "python") == 0

    def test_relevance_ordering(self):
        courses = [
            course("Web", description="python inside"),
            course("Python"),
            course("Python Data", rating=4.5),
        ]
        ordered = sort_search_results(courses, "relevance", "python")
        assert [c["title"] for c in ordered] == ["Python", "Python Data", "Web"]

    def test_popularity_and_dates(self):
        courses = [
            course("A", enrollments=1, age_days=1),
            course("B", enrollments=5, age_days=3),
            course("C", enrollments=3, age_days=2),
        ]
        assert [c["title"] for c in sort_search_results(courses, "popularity", None)] == ["B", "C", "A"]
        assert [c["title"] for c in sort_search_results(courses, "oldest", None)] == ["B", "C", "A"]
        assert [c["title"] for c in sort_search_results(courses, "newest", None)] == ["A", "C", "B"]

    def test_facets(self):
        courses = [
            course("A", categories=["Web", "Python"]),
            course("B", categories=["Python"]),
        ]
        assert category_facets(courses) == [
            {"category": "Python", "count": 2},
            {"category": "Web", "count": 1},
        ]


class TestAnalytics:

    def test_progress_buckets(self):
        enrollments = [{"progress_percentage": p} for p in (0, 25, 26, 80, 100, 100)]
        counts = {row["range"]: row["count"] for row in progress_distribution(enrollments)}
        assert counts == {"0-25": 2, "26-50": 1, "51-75": 0, "76-99": 1, "100": 2}

    def test_summary(self):
        enrollments = [
            {"status": "completed", "progress_percentage": 100,
             "enrolled_at": NOW - timedelta(days=10), "completed_at": NOW - timedelta(days=6)},
            {"status": "in_progress", "progress_percentage": 40, "enrolled_at": NOW - timedelta(days=60)},
        ]
        summary = summarize_enrollments(enrollments, now=NOW)
        assert summary["total_enrollments"] == 2
        assert summary["completed_enrollments"] == 1
        assert summary["active_enrollments"] == 1
        assert summary["recent_enrollments"] == 1
        assert summary["completion_rate"] == 50.0
        assert summary["average_completion_days"] == 4.0

    def test_empty_summary(self):
        summary = summarize_enrollments([], now=NOW)
        assert summary["completion_rate"] == 0
        assert summary["average_completion_days"] == 0
