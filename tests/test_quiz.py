# =============================================================================
# tests/test_quiz.py - Quiz Grading Tests
# =============================================================================

from intellecta.lessons.quiz import grade_quiz, redact_quiz

QUIZ = [
    {"question": "Q1", "options": ["a", "b"], "correct_answer": 0, "explanation": "because"},
    {"question": "Q2", "options": ["a", "b"], "correct_answer": 1},
    {"question": "Q3", "options": ["a", "b", "c"], "correct_answer": 2},
]


class TestGradeQuiz:

    def test_all_correct(self):
        result = grade_quiz(QUIZ, [0, 1, 2])
        assert result["score"] == 100
        assert result["correct_answers"] == 3
        assert result["passed"] is True

    def test_two_of_three_fails(self):
        result = grade_quiz(QUIZ, [0, 1, 0])
        assert result["score"] == 67
        assert result["passed"] is False
        assert result["results"][2]["is_correct"] is False
        assert result["results"][2]["correct_answer"] == 2

    def test_pass_mark_is_inclusive(self):
        quiz = [{"question": str(i), "options": ["a", "b"], "correct_answer": 0} for i in range(10)]
        result = grade_quiz(quiz, [0] * 7 + [1] * 3)
        assert result["score"] == 70
        assert result["passed"] is True

    def test_explanations_are_returned(self):
        result = grade_quiz(QUIZ, [1, 1, 2])
        assert result["results"][0]["explanation"] == "because"
        assert result["results"][1]["explanation"] is None


def test_redact_hides_answers():
    redacted = redact_quiz(QUIZ)
    assert redacted[0] == {"question": "Q1", "options": ["a", "b"]}
    assert all("correct_answer" not in q for q in redacted)
