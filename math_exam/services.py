import json
import logging
from typing import List, Optional

from groq import AsyncGroq
from pydantic import ValidationError

from math_exam.config import DEFAULT_MAX_TOKENS, DEFAULT_MODEL, DEFAULT_TEMPERATURE, ConfigError
from math_exam.models import QuestionAnswer

logger = logging.getLogger(__name__)

INVALID_FORMAT_MESSAGE = "AI returned an invalid or empty exam format."
UNAVAILABLE_MESSAGE = (
    "Failed to generate the exam. "
    "The AI model might be unavailable or the request was malformed."
)

EXAM_SCHEMA = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "question": {
                "type": "string",
                "description": "The math question text.",
            },
            "answer": {
                "type": "string",
                "description": "The correct answer to the math question.",
            },
        },
        "required": ["question", "answer"],
    },
}


class GenerationError(Exception):
    """The exam could not be generated. The message is safe to show to users."""


def build_prompt(topic: str, num_questions: int) -> str:
    return (
        f'Generate an exam with {num_questions} math questions about "{topic}". '
        "The questions should be appropriate for a high school level. "
        "Provide a clear question and a concise answer for each."
    )


def _strip_code_fence(text: str) -> str:
    # Some models wrap JSON in ```json ... ``` even when asked not to
    if text.startswith("```"):
        text = text.split("```")[1]
        if text.startswith("json"):
            text = text[4:]
        text = text.strip()
    return text


class ExamService:
    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        client: Optional[AsyncGroq] = None,
    ):
        if not api_key:
            raise ConfigError("An API key is required to generate exams")
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.client = client or AsyncGroq(api_key=api_key)

    async def generate_exam(self, topic: str, num_questions: int) -> List[QuestionAnswer]:
        """
        Generate `num_questions` question/answer pairs about `topic`.

        The model may return more items than requested, so the result is
        truncated. Raises GenerationError with a user-facing message on
        any failure; the underlying error is logged and chained.
        """
        prompt = build_prompt(topic, num_questions)
        logger.info(f"Requesting {num_questions} questions about {topic!r} from {self.model}")

        try:
            chat_completion = await self.client.chat.completions.create(
                messages=[
                    {
                        "role": "system",
                        "content": "You are a math exam generator. Always respond with valid JSON only.",
                    },
                    {
                        "role": "user",
                        "content": prompt,
                    },
                ],
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                response_format={
                    "type": "json_schema",
                    "json_schema": {"name": "exam", "schema": EXAM_SCHEMA},
                },
            )

            response_text = _strip_code_fence((chat_completion.choices[0].message.content or "").strip())
            exam_data = json.loads(response_text)

            if not isinstance(exam_data, list) or not exam_data:
                logger.error(f"Model returned an invalid or empty exam: {response_text[:200]!r}")
                raise GenerationError(INVALID_FORMAT_MESSAGE)

            exam = [QuestionAnswer.model_validate(item) for item in exam_data[:num_questions]]

        except GenerationError:
            raise
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error(f"Malformed exam from model: {e}", exc_info=True)
            raise GenerationError(UNAVAILABLE_MESSAGE) from e
        except Exception as e:
            logger.error(f"Error generating exam with Groq: {e}", exc_info=True)
            raise GenerationError(UNAVAILABLE_MESSAGE) from e

        logger.info(f"Generated {len(exam)} questions (model returned {len(exam_data)})")
        return exam
