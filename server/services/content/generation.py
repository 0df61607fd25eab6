"""Builds generation requests from a subject and validates what comes back."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple

from server.services.content.provider import ContentProvider, GenerationError
from server.services.content.validate import (
    clean_flashcards,
    clean_quizzes,
    validate_chat_reply,
    validate_quiz_feedback,
    validate_summary,
)
from study.enums import GENERATION_LIMITS, GenerationAmount, QuizType
from study.errors import InvalidInput
from study.models import QuizQuestion, Subject

logger = logging.getLogger("studymate.content")

LANGUAGES = ("en", "fr")


def build_payload(
    subject: Subject,
    *,
    focus: str = "",
    language: str = "en",
    amount: GenerationAmount = GenerationAmount.NORMAL,
    max_input_chars: int = 20000,
) -> Dict[str, Any]:
    """
    Request body shared by every task.

    Raises InvalidInput when the subject has neither material nor files.
    Material and focus longer than max_input_chars are cut.
    """
    if language not in LANGUAGES:
        raise InvalidInput(f"Unsupported language: {language}")
    material = subject.material or ""
    if not material.strip() and not subject.files:
        raise InvalidInput("Subject has no material or files to generate from")
    if len(material) > max_input_chars:
        logger.warning("Material for %s is %d chars; truncating to %d", subject.id, len(material), max_input_chars)
        material = material[:max_input_chars]
    focus = (focus or "")[:max_input_chars]
    return {
        "subject": subject.name,
        "difficulty": subject.difficulty.value,
        "material": material,
        "files": [{"mime_type": f.mime_type, "data": f.data} for f in subject.files],
        "focus": focus,
        "language": language,
        "limits": dict(GENERATION_LIMITS[amount]),
    }


async def generate_summary(provider: ContentProvider, payload: Dict[str, Any]) -> str:
    result = await provider.generate("summary", payload)
    ok, reason = validate_summary(result)
    if not ok:
        raise GenerationError(kind="invalid_schema", message="Summary output rejected", details={"reason": reason})
    return result["summary"].strip()


async def generate_flashcards(provider: ContentProvider, payload: Dict[str, Any]) -> List[Tuple[str, str]]:
    result = await provider.generate("flashcards", payload)
    pairs = clean_flashcards(result, payload["limits"]["flashcards"])
    if not pairs:
        raise GenerationError(kind="invalid_schema", message="No valid flashcards in output")
    logger.info("Generated %d flashcard(s) for %s", len(pairs), payload["subject"])
    return pairs


async def generate_quizzes(provider: ContentProvider, payload: Dict[str, Any]) -> Dict[QuizType, List[QuizQuestion]]:
    result = await provider.generate("quizzes", payload)
    quizzes = clean_quizzes(result, payload["limits"]["quizzes"])
    if not quizzes:
        raise GenerationError(kind="invalid_schema", message="No valid quiz questions in output")
    logger.info(
        "Generated quizzes for %s: %s",
        payload["subject"],
        ", ".join(f"{qt.value}={len(qs)}" for qt, qs in quizzes.items()),
    )
    return quizzes


CHAT_ROLES = ("user", "model")


def build_chat_payload(
    subject: Subject,
    history: List[Dict[str, str]],
    *,
    language: str = "en",
    max_input_chars: int = 20000,
) -> Dict[str, Any]:
    """
    Request body for a chat turn about a subject.

    history is the conversation so far as {"role", "content"} dicts, oldest
    first, and must end with the user's question. Chat works without
    material; the service falls back to files and general knowledge.
    """
    if language not in LANGUAGES:
        raise InvalidInput(f"Unsupported language: {language}")
    if not history:
        raise InvalidInput("Chat history is empty")
    messages = []
    for i, message in enumerate(history):
        role = message.get("role")
        content = (message.get("content") or "").strip()
        if role not in CHAT_ROLES:
            raise InvalidInput(f"Unknown chat role: {role}")
        if not content:
            raise InvalidInput(f"Chat message {i} is empty")
        if len(content) > max_input_chars:
            logger.warning("Chat message %d is %d chars; truncating to %d", i, len(content), max_input_chars)
            content = content[:max_input_chars]
        messages.append({"role": role, "content": content})
    if messages[-1]["role"] != "user":
        raise InvalidInput("Chat history must end with a user message")

    material = subject.material or ""
    if len(material) > max_input_chars:
        logger.warning("Material for %s is %d chars; truncating to %d", subject.id, len(material), max_input_chars)
        material = material[:max_input_chars]
    return {
        "subject": subject.name,
        "material": material,
        "files": [{"mime_type": f.mime_type, "data": f.data} for f in subject.files],
        "language": language,
        "history": messages,
    }


async def generate_chat_reply(provider: ContentProvider, payload: Dict[str, Any]) -> str:
    result = await provider.generate("chat", payload)
    ok, reason = validate_chat_reply(result)
    if not ok:
        raise GenerationError(kind="invalid_schema", message="Chat reply rejected", details={"reason": reason})
    return result["reply"].strip()


async def generate_quiz_feedback(
    provider: ContentProvider,
    incorrect: List[QuizQuestion],
    language: str = "en",
) -> str:
    """Study tips for the questions a student got wrong. No wrong answers, no call."""
    if language not in LANGUAGES:
        raise InvalidInput(f"Unsupported language: {language}")
    if not incorrect:
        return ""
    payload = {
        "language": language,
        "incorrect": [
            {"question": q.question, "correct_answer": list(q.correct_answer), "explanation": q.explanation}
            for q in incorrect
        ],
    }
    result = await provider.generate("quiz_feedback", payload)
    ok, reason = validate_quiz_feedback(result)
    if not ok:
        raise GenerationError(kind="invalid_schema", message="Quiz feedback rejected", details={"reason": reason})
    return result["feedback"].strip()
