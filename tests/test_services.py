import asyncio

import pytest

from conftest import make_pairs
from math_exam.config import ConfigError
from math_exam.services import (
    EXAM_SCHEMA,
    INVALID_FORMAT_MESSAGE,
    UNAVAILABLE_MESSAGE,
    ExamService,
    GenerationError,
    build_prompt,
)


def test_truncates_to_requested_count_in_order(groq_service):
    service, _ = groq_service(make_pairs(5))
    exam = asyncio.run(service.generate_exam("Fractions", 3))
    assert [q.question for q in exam] == [p["question"] for p in make_pairs(3)]


def test_keeps_short_responses(groq_service):
    service, _ = groq_service(make_pairs(2))
    exam = asyncio.run(service.generate_exam("Algebra", 5))
    assert len(exam) == 2
    assert exam[1].answer == "4"


def test_request_carries_prompt_and_schema(groq_service):
    service, client = groq_service(make_pairs(1))
    asyncio.run(service.generate_exam("Geometry", 4))

    call = client.calls[0]
    assert call["messages"][-1]["content"] == build_prompt("Geometry", 4)
    assert call["response_format"]["type"] == "json_schema"
    assert call["response_format"]["json_schema"]["schema"] == EXAM_SCHEMA
    assert len(client.calls) == 1


def test_prompt_mentions_topic_and_count():
    prompt = build_prompt("Trigonometry", 7)
    assert '"Trigonometry"' in prompt
    assert "7 math questions" in prompt
    assert "high school" in prompt


def test_surrounding_whitespace_and_code_fence(groq_service):
    raw = '  ```json\n[{"question": "1+1?", "answer": "2"}]\n```  '
    service, _ = groq_service(raw=raw)
    exam = asyncio.run(service.generate_exam("Arithmetic", 1))
    assert exam[0].answer == "2"


@pytest.mark.parametrize("payload", [[], {"questions": make_pairs(2)}, "a string", 3])
def test_empty_or_non_array_is_invalid_format(groq_service, payload):
    service, _ = groq_service(payload)
    with pytest.raises(GenerationError) as exc:
        asyncio.run(service.generate_exam("Algebra", 5))
    assert str(exc.value) == INVALID_FORMAT_MESSAGE


def test_malformed_json(groq_service):
    service, _ = groq_service(raw="Here is your exam: [")
    with pytest.raises(GenerationError) as exc:
        asyncio.run(service.generate_exam("Algebra", 5))
    assert str(exc.value) == UNAVAILABLE_MESSAGE


def test_item_missing_answer(groq_service):
    service, _ = groq_service([{"question": "2+2?"}])
    with pytest.raises(GenerationError) as exc:
        asyncio.run(service.generate_exam("Algebra", 1))
    assert str(exc.value) == UNAVAILABLE_MESSAGE


def test_bad_items_past_the_requested_count_are_ignored(groq_service):
    service, _ = groq_service(make_pairs(2) + [{"oops": True}])
    exam = asyncio.run(service.generate_exam("Algebra", 2))
    assert len(exam) == 2


def test_network_failure_is_chained(groq_service):
    error = ConnectionError("connection reset")
    service, _ = groq_service(error=error)
    with pytest.raises(GenerationError) as exc:
        asyncio.run(service.generate_exam("Algebra", 5))
    assert str(exc.value) == UNAVAILABLE_MESSAGE
    assert exc.value.__cause__ is error


def test_empty_reply(groq_service):
    service, _ = groq_service(raw="")
    with pytest.raises(GenerationError) as exc:
        asyncio.run(service.generate_exam("Algebra", 5))
    assert str(exc.value) == UNAVAILABLE_MESSAGE


def test_results_are_immutable(groq_service):
    service, _ = groq_service(make_pairs(1))
    exam = asyncio.run(service.generate_exam("Algebra", 1))
    with pytest.raises(Exception):
        exam[0].answer = "changed"


def test_requires_api_key():
    with pytest.raises(ConfigError):
        ExamService(api_key="")
