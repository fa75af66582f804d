import logging
from typing import Iterable, List

from app.models.course_test import CourseTest
from app.schemas.attempt import AnswerSubmission, GradedAnswer, GradingResult

logger = logging.getLogger(__name__)


def calculate_score(correct: int, total: int) -> int:
    """Percentage rounded half-up to an integer; 0 for an empty test."""
    if total <= 0:
        return 0
    # Integer arithmetic keeps .5 boundaries exact.
    return (200 * correct + total) // (2 * total)


def grade_submission(test: CourseTest, answers: Iterable[AnswerSubmission]) -> GradingResult:
    """Grade submitted answers against the test's questions and options.

    Answers naming a question outside the test are dropped. An answer whose
    option is missing or does not belong to its question is kept as
    unanswered and counts as incorrect. The score is taken over every
    question in the test, answered or not.
    """
    questions = {question.id: question for question in test.questions}
    graded: List[GradedAnswer] = []
    correct = 0

    for answer in answers:
        question = questions.get(answer.question_id)
        if question is None:
            logger.debug(f"Skipping answer for question {answer.question_id}: not part of test {test.id}")
            continue

        option = next((o for o in question.options if o.id == answer.selected_option_id), None)
        if option is None:
            graded.append(GradedAnswer(question_id=question.id))
            continue

        if option.is_correct:
            correct += 1
        graded.append(GradedAnswer(question_id=question.id, selected_option_id=option.id, is_correct=option.is_correct))

    total = len(questions)
    score = calculate_score(correct, total)
    return GradingResult(
        answers=graded,
        score=score,
        correct_answers=correct,
        total_questions=total,
        is_passed=score >= test.passing_score,
    )
