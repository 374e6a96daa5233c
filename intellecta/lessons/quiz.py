"""
Quiz grading and answer redaction
"""

from intellecta.core.config import QUIZ_PASS_SCORE
from intellecta.core.serialization import js_round


def grade_quiz(quiz: list[dict], answers: list[int]) -> dict:
    """Caller guarantees len(answers) == len(quiz) and quiz is non-empty"""
    results = []
    correct = 0
    for index, (question, answer) in enumerate(zip(quiz, answers)):
        is_correct = answer == question["correct_answer"]
        if is_correct:
            correct += 1
        results.append({
            "question_index": index,
            "question": question["question"],
            "user_answer": answer,
            "correct_answer": question["correct_answer"],
            "is_correct": is_correct,
            "explanation": question.get("explanation"),
        })

    score = js_round(correct / len(quiz) * 100)
    return {
        "score": score,
        "correct_answers": correct,
        "total_questions": len(quiz),
        "passed": score >= QUIZ_PASS_SCORE,
        "results": results,
    }


def redact_quiz(quiz: list[dict]) -> list[dict]:
    """Learner view: no answers, no explanations"""
    return [
        {"question": q["question"], "options": q["options"]}
        for q in quiz
    ]
