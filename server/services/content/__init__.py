"""Study content, chat replies and quiz feedback through an external content service."""

from server.services.content.provider import (
    ContentProvider,
    GenerationError,
    get_provider,
)
from server.services.content.generation import (
    build_chat_payload,
    build_payload,
    generate_chat_reply,
    generate_flashcards,
    generate_quiz_feedback,
    generate_quizzes,
    generate_summary,
)

__all__ = [
    "ContentProvider",
    "GenerationError",
    "get_provider",
    "build_chat_payload",
    "build_payload",
    "generate_chat_reply",
    "generate_flashcards",
    "generate_quiz_feedback",
    "generate_quizzes",
    "generate_summary",
]
