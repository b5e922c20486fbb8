import pytest

from app.core.errors import ValidationFailed
from app.services.attempts import UNANSWERED, count_correct, score_answers, validate_answers


def _questions(correct: list[int], options: int = 3) -> list[dict]:
    return [
        {"text": f"Q{i}", "options": [f"o{j}" for j in range(options)], "correct_answer": c}
        for i, c in enumerate(correct)
    ]


THREE = _questions([0, 1, 2])


def test_all_correct_scores_100():
    assert score_answers(THREE, [0, 1, 2]) == 100


def test_one_of_three_rounds_to_33():
    assert score_answers(THREE, [0, 0, 0]) == 33


def test_all_unanswered_scores_0():
    assert score_answers(THREE, [UNANSWERED] * 3) == 0


def test_two_of_three_rounds_up_to_67():
    assert score_answers(THREE, [0, 1, 0]) == 67


def test_half_rounds_up():
    # 1/8 = 12.5% -> 13
    assert score_answers(_questions([0] * 8), [0] + [1] * 7) == 13


def test_sentinel_never_matches_even_if_correct_answer_were_negative():
    questions = [{"text": "broken", "options": ["a", "b"], "correct_answer": UNANSWERED}]
    assert count_correct(questions, [UNANSWERED]) == 0


def test_no_questions_scores_zero():
    assert score_answers([], []) == 0


@pytest.mark.parametrize("n", [1, 2, 3, 6, 7, 15])
def test_score_is_bounded_integer_percentage(n):
    questions = _questions([0] * n)
    for matches in range(n + 1):
        answers = [0] * matches + [UNANSWERED] * (n - matches)
        score = score_answers(questions, answers)
        assert isinstance(score, int)
        assert 0 <= score <= 100
        assert abs(score - 100 * matches / n) <= 0.5


def test_validate_answers_accepts_sentinel_and_valid_indexes():
    assert validate_answers(THREE, [UNANSWERED, 2, 0]) == [UNANSWERED, 2, 0]


@pytest.mark.parametrize("answers", [[0, 1], [0, 1, 2, 0], [0, 1, 3], [0, -2, 1]])
def test_validate_answers_rejects_bad_shape(answers):
    with pytest.raises(ValidationFailed):
        validate_answers(THREE, answers)
