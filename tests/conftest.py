import asyncio
import json
from types import SimpleNamespace

import pytest

from math_exam.models import QuestionAnswer
from math_exam.services import ExamService


def make_pairs(n):
    return [{"question": f"What is {i} + {i}?", "answer": str(i + i)} for i in range(1, n + 1)]


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeGroq:
    def __init__(self, content=None, error=None):
        self.chat = SimpleNamespace(completions=FakeCompletions(content, error))

    @property
    def calls(self):
        return self.chat.completions.calls


class FakeExamService:
    """Stands in for ExamService / BackendExamClient in controller tests."""

    def __init__(self, result=None, error=None, on_call=None, delay=0):
        self.result = result if result is not None else [QuestionAnswer(**p) for p in make_pairs(3)]
        self.error = error
        self.on_call = on_call
        self.delay = delay
        self.calls = []

    async def generate_exam(self, topic, num_questions):
        self.calls.append((topic, num_questions))
        if self.on_call is not None:
            self.on_call()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def groq_service():
    """Build an ExamService whose model replies with the given payload."""
    def build(payload=None, error=None, raw=None):
        content = raw if raw is not None else json.dumps(payload)
        client = FakeGroq(content=content, error=error)
        return ExamService(api_key="test-key", client=client), client
    return build
