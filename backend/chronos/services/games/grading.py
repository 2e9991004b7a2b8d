"""Answer grading strategies.

Each question type captures input differently but reduces it to a single
correct / incorrect decision. Input that cannot be graded raises
``AnswerFormatError`` so the player can fix it without losing the question.
"""

from decimal import Decimal, InvalidOperation
from fractions import Fraction

from chronos.errors import AnswerFormatError

_WORD_COUNT_NAMES = {2: 'two', 3: 'three', 4: 'four'}


def normalize_text(value) -> str:
    return ' '.join(str(value).split()).upper()


def word_count(value) -> int:
    return len(str(value).split())


def word_count_message(expected: int) -> str:
    name = _WORD_COUNT_NAMES.get(expected, str(expected))
    return f"The answer is {name} words separated by space"


def answer_format_hint(answer) -> str:
    count = word_count(answer)
    if count <= 1:
        return 'Single word'
    if count in _WORD_COUNT_NAMES:
        return f"{_WORD_COUNT_NAMES[count].capitalize()} words separated by space"
    return f"{count} words separated by space"


def _require_text(raw) -> str:
    if raw is None or not str(raw).strip():
        raise AnswerFormatError()
    return str(raw)


def grade_text(question, raw) -> bool:
    text = _require_text(raw)
    expected_words = word_count(question.answer)
    allowed_counts = {word_count(accepted) for accepted in question.accepted_answers}
    if expected_words > 1 and word_count(text) not in allowed_counts:
        raise AnswerFormatError(word_count_message(expected_words))
    submitted = normalize_text(text)
    return any(submitted == normalize_text(accepted) for accepted in question.accepted_answers)


def grade_choice(question, raw) -> bool:
    if isinstance(raw, bool):
        raise AnswerFormatError('Please choose one of the options')
    if isinstance(raw, int):
        if not 0 <= raw < len(question.options):
            raise AnswerFormatError('Please choose one of the options')
        raw = question.options[raw]
    text = normalize_text(_require_text(raw))
    if question.options and text not in {normalize_text(o) for o in question.options}:
        raise AnswerFormatError('Please choose one of the options')
    return any(text == normalize_text(accepted) for accepted in question.accepted_answers)


def _to_decimal(raw) -> Decimal:
    text = str(raw).strip().replace(' ', '')
    try:
        value = Decimal(text)
    except InvalidOperation:
        raise AnswerFormatError('Please enter a number') from None
    if not value.is_finite():
        raise AnswerFormatError('Please enter a number')
    return value


def grade_numeric(question, raw) -> bool:
    if isinstance(raw, bool):
        raise AnswerFormatError('Please enter a number')
    _require_text(raw)
    submitted = _to_decimal(raw)
    return any(submitted == _to_decimal(accepted) for accepted in question.accepted_answers)


def _to_fraction(raw) -> Fraction:
    if isinstance(raw, dict):
        raw = f"{raw.get('numerator', '')}/{raw.get('denominator', '')}"
    text = str(raw).replace(' ', '')
    numerator, sep, denominator = text.partition('/')
    try:
        if not sep:
            return Fraction(int(numerator))
        return Fraction(int(numerator), int(denominator))
    except (ValueError, ZeroDivisionError):
        raise AnswerFormatError('Please enter both fractions as numerator/denominator') from None


def _fraction_pair(raw):
    if isinstance(raw, str):
        raw = raw.replace(';', ',').split(',')
    if not isinstance(raw, (list, tuple)) or len(raw) != 2:
        raise AnswerFormatError('Please enter both fractions')
    return tuple(_to_fraction(part) for part in raw)


def grade_fraction(question, raw) -> bool:
    if raw is None:
        raise AnswerFormatError('Please enter both fractions')
    submitted = _fraction_pair(raw)
    return any(submitted == _fraction_pair(accepted) for accepted in question.accepted_answers)


GRADERS = {
    'text': grade_text,
    'choice': grade_choice,
    'numeric': grade_numeric,
    'fraction': grade_fraction,
}


def grade(question, raw) -> bool:
    try:
        grader = GRADERS[question.type]
    except KeyError:
        raise ValueError(f"Unsupported question type: {question.type}") from None
    return grader(question, raw)
