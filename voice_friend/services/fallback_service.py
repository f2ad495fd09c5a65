"""
Slow-path reply generation for input the corpus does not cover.

Uses an OpenAI chat model seeded with two corpus exchanges as style examples.
Falls back to a small deterministic rule set if OPENAI_API_KEY is not
configured or the backend call fails for any reason.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional, Protocol

import httpx
import openai
from loguru import logger

from voice_friend.config import Settings
from voice_friend.exceptions import BackendError
from voice_friend.services.corpus_index import CorpusIndex, ExchangeRecord
from voice_friend.services.speech_text import normalize_for_speech


# ── Key validation ────────────────────────────────────────
def _is_real_api_key(key: str) -> bool:
    """Return True only if the key looks like a genuine OpenAI API key."""
    if not key:
        return False
    # Placeholder keys contain 'your' or are too short / malformed
    if "your" in key.lower():
        return False
    if not key.startswith("sk-"):
        return False
    if len(key) < 30:
        return False
    return True


@dataclass(frozen=True)
class GenerationBounds:
    model: str
    max_tokens: int
    temperature: float


class GenerativeBackend(Protocol):
    async def generate(self, instruction: str, user_text: str, bounds: GenerationBounds) -> str:
        """Return generated text or raise BackendError."""
        ...


class OpenAIBackend:
    """Chat-completions backend. Single attempt: the SDK's retries are disabled."""

    def __init__(self, api_key: str, timeout: float):
        self._client = openai.AsyncOpenAI(
            api_key=api_key,
            timeout=httpx.Timeout(timeout),
            max_retries=0,
        )

    async def generate(self, instruction: str, user_text: str, bounds: GenerationBounds) -> str:
        try:
            completion = await self._client.chat.completions.create(
                model=bounds.model,
                messages=[
                    {"role": "system", "content": instruction},
                    {"role": "user", "content": user_text},
                ],
                max_tokens=bounds.max_tokens,
                temperature=bounds.temperature,
            )
        except openai.OpenAIError as e:
            raise BackendError(f"OpenAI request failed: {e}") from e

        try:
            content = completion.choices[0].message.content
        except (IndexError, AttributeError) as e:
            raise BackendError("Malformed completion response") from e

        if not content or not content.strip():
            raise BackendError("Empty completion")
        return content.strip()


def create_backend(settings: Settings) -> Optional[OpenAIBackend]:
    if not _is_real_api_key(settings.OPENAI_API_KEY):
        logger.warning("OpenAI API key not provided — using cache-only mode")
        return None
    logger.info(f"OpenAI initialized for fallback responses (model={settings.OPENAI_MODEL})")
    return OpenAIBackend(settings.OPENAI_API_KEY, settings.BACKEND_TIMEOUT_SECONDS)


# ─────────────────────────────────────────────────────────
#  STYLE PROMPT
# ─────────────────────────────────────────────────────────

_DEFAULT_EXAMPLES = (
    ExchangeRecord("I feel lonely", "I'm here for you"),
    ExchangeRecord("I am stressed", "That's okay. Want to talk about it?"),
)

STYLE_PROMPT = """You are a caring, empathetic AI friend. Your responses should be:
- Short (1-2 sentences maximum)
- Warm and supportive
- Conversational and natural (for voice)
- Never mention you're an AI, training, or datasets
- Focus on emotional support and validation

Examples of your personality:
User: {user1}
You: {reply1}

User: {user2}
You: {reply2}

Respond naturally as a supportive friend would in conversation."""


def build_style_prompt(
    first: Optional[ExchangeRecord],
    second: Optional[ExchangeRecord],
) -> str:
    first = first or _DEFAULT_EXAMPLES[0]
    second = second or _DEFAULT_EXAMPLES[1]
    return STYLE_PROMPT.format(
        user1=first.prompt, reply1=first.reply,
        user2=second.prompt, reply2=second.reply,
    )


# ─────────────────────────────────────────────────────────
#  RULE-BASED REPLIES
# ─────────────────────────────────────────────────────────

_GREETINGS = ["hello", "hi", "hey"]
GREETING_REPLY = "Hey! I'm here for you. How are you feeling?"

_THANKS = ["thank"]
THANKS_REPLY = "You're welcome! I'm always here when you need me."

_GOODBYE = ["bye", "goodbye"]
GOODBYE_REPLY = "Take care! I'll be here whenever you need to talk."

GENERIC_REPLY = "I hear you. Tell me more about what's on your mind."

_RULES = (
    (_GREETINGS, GREETING_REPLY),
    (_THANKS, THANKS_REPLY),
    (_GOODBYE, GOODBYE_REPLY),
)


def _match(text, terms):
    return any(term in text for term in terms)


def rule_based_reply(user_text: str) -> str:
    """
    Deterministic terminal fallback: greeting, thanks, farewell, or generic.
    Terms match as plain substrings of the lower-cased input.
    """
    text = user_text.lower().strip()
    for patterns, reply in _RULES:
        if _match(text, patterns):
            return reply
    return GENERIC_REPLY


# ─────────────────────────────────────────────────────────
#  GENERATOR
# ─────────────────────────────────────────────────────────

class FallbackGenerator:
    def __init__(
        self,
        index: CorpusIndex,
        backend: Optional[GenerativeBackend] = None,
        bounds: Optional[GenerationBounds] = None,
        timeout: float = 5.0,
    ):
        self._index = index
        self._backend = backend
        self._bounds = bounds or GenerationBounds(model="gpt-3.5-turbo", max_tokens=50, temperature=0.7)
        self._timeout = timeout

    @property
    def enabled(self) -> bool:
        return self._backend is not None

    async def _call_backend(self, user_text: str) -> str:
        instruction = build_style_prompt(self._index.pick_example(), self._index.pick_example())
        try:
            text = await asyncio.wait_for(
                self._backend.generate(instruction, user_text, self._bounds),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            raise BackendError(f"Backend timed out after {self._timeout}s") from e

        if not normalize_for_speech(text):
            raise BackendError("Backend reply is empty once cleaned for speech")
        return text

    async def generate(self, user_text: str) -> str:
        if self._backend is None:
            return rule_based_reply(user_text)

        try:
            return await self._call_backend(user_text)
        except BackendError as e:
            logger.error(f"Backend error: {e}")
        except Exception:
            logger.exception("Unexpected backend failure")

        logger.info("[RULES FALLBACK after error] using rule-based reply")
        return rule_based_reply(user_text)
