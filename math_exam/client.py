import asyncio
import logging
from typing import List

import requests

from math_exam.models import QuestionAnswer
from math_exam.services import UNAVAILABLE_MESSAGE, GenerationError

logger = logging.getLogger(__name__)

BACKEND_UNREACHABLE_MESSAGE = "Cannot connect to the exam server. Please try again later."
BACKEND_TIMEOUT_MESSAGE = "The exam server took too long to respond. Please try again."


class BackendExamClient:
    """Talks to the FastAPI backend; same contract as ExamService.generate_exam."""

    def __init__(self, base_url: str, timeout: float = 60):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _post(self, topic: str, num_questions: int) -> requests.Response:
        return requests.post(
            f"{self.base_url}/api/exam/generate",
            json={"topic": topic, "num_questions": num_questions},
            timeout=self.timeout,
        )

    async def generate_exam(self, topic: str, num_questions: int) -> List[QuestionAnswer]:
        logger.info(f"Calling API: {self.base_url}/api/exam/generate")
        try:
            response = await asyncio.to_thread(self._post, topic, num_questions)
        except requests.exceptions.ConnectionError as e:
            logger.error(f"Connection error: {e}")
            raise GenerationError(BACKEND_UNREACHABLE_MESSAGE) from e
        except requests.exceptions.Timeout as e:
            logger.error(f"Timeout error: {e}")
            raise GenerationError(BACKEND_TIMEOUT_MESSAGE) from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Request error: {e}")
            raise GenerationError(BACKEND_UNREACHABLE_MESSAGE) from e

        logger.info(f"API Response Status: {response.status_code}")

        if response.status_code != 200:
            logger.error(f"API Error: {response.text[:200]}")
            try:
                detail = response.json().get("detail")
            except ValueError:
                detail = None
            # 422 bodies carry a list of validation errors, not a message
            raise GenerationError(detail if isinstance(detail, str) else UNAVAILABLE_MESSAGE)

        try:
            data = response.json()
            return [QuestionAnswer.model_validate(q) for q in data["questions"]]
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Malformed exam from backend: {e}", exc_info=True)
            raise GenerationError(UNAVAILABLE_MESSAGE) from e
