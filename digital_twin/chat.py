"""Persona chat relay backed by Gemini.

Without a ``GEMINI_API_KEY`` the relay answers with a deterministic mock so
the dashboard stays usable offline. Every reply is trimmed to three display
lines.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable

from google import genai

from .config import Settings
from .logging_setup import get_logger
from .models import ChatMessage, Source

logger = get_logger(__name__)

DEFAULT_PERSONA = "Current You"

PERSONAS: dict[str, str] = {
    "Current You": (
        "You are a financial analyst. Provide concise, practical observations "
        "grounded in the user's spending data."
    ),
    "Good Twin": (
        "You are an encouraging financial coach. Provide gentle, actionable tips "
        "to save and grow wealth."
    ),
    "Evil Twin": (
        "You are a mischievous advisor encouraging risky fun. Always include a "
        "disclaimer: not financial advice."
    ),
}

PRESET_QUESTIONS: tuple[str, ...] = (
    "Gambling problem?",
    "Investments?",
    "How's my lifestyle?",
    "How to save more?",
)

MAX_LINES = 3
LINE_BREAK_CHARS = 120
NO_RESPONSE_TEXT = "No response"
API_ERROR_TEXT = "Error contacting Gemini. Please try again later."
SEND_ERROR_TEXT = "Error fetching response. Please try again."

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")
_SENTENCE_END = re.compile(r"[.!?]$")


@dataclass(frozen=True)
class Reply:
    text: str
    sources: tuple[Source, ...] = ()


def system_instruction(persona: str) -> str:
    return PERSONAS.get(persona, PERSONAS[DEFAULT_PERSONA])


def shorten_to_max_lines(text: str | None, max_lines: int = MAX_LINES) -> str | None:
    """Limit ``text`` to ``max_lines`` display lines.

    Existing line breaks win when there are enough of them; otherwise the text
    is regrouped sentence by sentence, closing a line once it runs past 120
    characters or ends a sentence.
    """

    if not text:
        return text

    normalized = str(text).strip().replace("\r\n", "\n")
    lines = [line.strip() for line in normalized.split("\n") if line.strip()]
    if len(lines) >= max_lines:
        return "\n".join(lines[:max_lines])

    result: list[str] = []
    current = ""
    for sentence in _SENTENCE_SPLIT.split(normalized):
        current = sentence.strip() if not current else f"{current} {sentence.strip()}"
        if len(current) > LINE_BREAK_CHARS or _SENTENCE_END.search(current):
            result.append(current)
            current = ""
        if len(result) >= max_lines:
            break
    if len(result) < max_lines and current:
        result.append(current)
    return "\n".join(result[:max_lines])


def _build_config(persona: str, settings: Settings) -> dict[str, Any]:
    config: dict[str, Any] = {"system_instruction": system_instruction(persona)}
    if settings.search_grounding:
        config["tools"] = [{"google_search": {}}]
    return config


def _extract_sources(candidate: Any) -> tuple[Source, ...]:
    metadata = getattr(candidate, "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []
    sources = []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        if web is None:
            continue
        title, uri = getattr(web, "title", None), getattr(web, "uri", None)
        if title or uri:
            sources.append(Source(title=title, uri=uri))
    return tuple(sources)


def _extract_text(response: Any) -> str:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return NO_RESPONSE_TEXT
    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []
    text = getattr(parts[0], "text", None) if parts else None
    return text or NO_RESPONSE_TEXT


def ask_twin(
    prompt: str,
    persona: str,
    settings: Settings,
    client: Any | None = None,
) -> Reply:
    """Send ``prompt`` to Gemini in the voice of ``persona``."""

    if not settings.gemini_api_key:
        mock = f"(No Gemini API key) Mock reply for: {prompt}"
        return Reply(text=shorten_to_max_lines(mock) or "")

    try:
        client = client or genai.Client(api_key=settings.gemini_api_key)
        response = client.models.generate_content(
            model=settings.gemini_model,
            contents=[{"role": "user", "parts": [{"text": prompt}]}],
            config=_build_config(persona, settings),
        )
    except Exception as exc:
        logger.warning("Gemini call failed (%s): %s", type(exc).__name__, exc)
        return Reply(text=shorten_to_max_lines(API_ERROR_TEXT) or "")

    candidates = getattr(response, "candidates", None) or []
    sources = _extract_sources(candidates[0]) if candidates else ()
    return Reply(text=shorten_to_max_lines(_extract_text(response)) or "", sources=sources)


Relay = Callable[[str, str], Reply]


@dataclass
class ChatSession:
    """Transcript for one browser session. Messages are only ever appended."""

    persona: str = DEFAULT_PERSONA
    history: list[ChatMessage] = field(default_factory=list)
    is_loading: bool = False

    def select_persona(self, persona: str) -> None:
        self.persona = persona if persona in PERSONAS else DEFAULT_PERSONA

    def send(self, question: str | None, ask: Relay) -> ChatMessage | None:
        """Ask ``question`` and append both sides of the exchange.

        Blank questions and sends made while a reply is pending are ignored.
        """

        if not question or not str(question).strip() or self.is_loading:
            return None

        persona = self.persona
        self.history.append(ChatMessage(role="user", persona_name="You", text=str(question)))
        self.is_loading = True
        try:
            reply = ask(str(question), persona)
            message = ChatMessage(
                role="assistant",
                persona_name=persona,
                text=reply.text,
                sources=reply.sources,
            )
        except Exception as exc:
            logger.warning("Chat relay raised %s: %s", type(exc).__name__, exc)
            message = ChatMessage(role="assistant", persona_name=persona, text=SEND_ERROR_TEXT)
        finally:
            self.is_loading = False
        self.history.append(message)
        return message
