from math_exam.models import QuestionAnswer

EXAM_HEADING = "Generated Exam"


def toggle_label(shown: bool) -> str:
    return "Hide Answer" if shown else "Show Answer"


def format_question(index: int, item: QuestionAnswer, shown: bool = False) -> str:
    text = f"Q{index + 1}: {item.question}"
    if shown:
        text += f"\n\nAnswer: {item.answer}"
    return text
