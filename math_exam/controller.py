"""
Form state for one exam generator session.

The controller holds what the user typed (as raw strings), validates it on
submit and drives a single call to anything exposing
``async generate_exam(topic, num_questions)``: the ExamService itself or
the BackendExamClient.
"""
import logging
from enum import Enum
from typing import Dict, List, Optional, Tuple

from math_exam.models import MAX_QUESTIONS, MIN_QUESTIONS, QuestionAnswer
from math_exam.services import GenerationError

logger = logging.getLogger(__name__)

DEFAULT_TOPIC = "Algebra"
DEFAULT_NUM_QUESTIONS = "5"

EMPTY_TOPIC_MESSAGE = "Please enter a math topic."
INVALID_COUNT_MESSAGE = f"Please enter a valid number of questions ({MIN_QUESTIONS}-{MAX_QUESTIONS})."
UNKNOWN_ERROR_MESSAGE = "An unknown error occurred. Please try again."


class FormState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    FAILURE = "failure"


class FormValidationError(ValueError):
    pass


def parse_form(topic: str, num_questions: str) -> Tuple[str, int]:
    """Return (topic, count) or raise FormValidationError with the message to show."""
    topic = (topic or "").strip()
    if not topic:
        raise FormValidationError(EMPTY_TOPIC_MESSAGE)

    text = str(num_questions).strip()
    # int() alone would accept "1_0" and non-ASCII digits
    digits = text[1:] if text[:1] in ("+", "-") else text
    if not (text.isascii() and digits.isdigit()):
        raise FormValidationError(INVALID_COUNT_MESSAGE)
    count = int(text)
    if count < MIN_QUESTIONS or count > MAX_QUESTIONS:
        raise FormValidationError(INVALID_COUNT_MESSAGE)

    return topic, count


class ExamFormController:
    def __init__(self, service, topic: str = DEFAULT_TOPIC, num_questions: str = DEFAULT_NUM_QUESTIONS):
        self.service = service
        self.topic = topic
        self.num_questions = num_questions
        self.state = FormState.IDLE
        self.exam: Optional[List[QuestionAnswer]] = None
        self.error: Optional[str] = None
        self.revealed: Dict[int, bool] = {}
        # bumped every time a new exam is stored
        self.generation = 0

    @property
    def is_loading(self) -> bool:
        return self.state is FormState.LOADING

    def _fail(self, message: str) -> FormState:
        self.state = FormState.FAILURE
        self.error = message
        return self.state

    async def submit(self) -> FormState:
        if self.is_loading:
            logger.warning("Submit ignored: a request is already in flight")
            return self.state

        try:
            topic, count = parse_form(self.topic, self.num_questions)
        except FormValidationError as e:
            return self._fail(str(e))

        self.state = FormState.LOADING
        self.exam = None
        self.error = None
        self.revealed = {}

        try:
            exam = await self.service.generate_exam(topic, count)
        except GenerationError as e:
            return self._fail(str(e) or UNKNOWN_ERROR_MESSAGE)
        except Exception:
            logger.exception("Unexpected error while generating exam")
            return self._fail(UNKNOWN_ERROR_MESSAGE)

        self.exam = list(exam)
        self.generation += 1
        self.state = FormState.SUCCESS
        return self.state

    def toggle_answer(self, index: int) -> bool:
        """Flip answer visibility for one question and return the new value."""
        if not self.exam or not 0 <= index < len(self.exam):
            raise IndexError(f"No question at index {index}")
        self.revealed[index] = not self.revealed.get(index, False)
        return self.revealed[index]

    def is_revealed(self, index: int) -> bool:
        return self.revealed.get(index, False)
