"""
Follow-up drafting with Gemini.

Drafting never raises: a missing key, an empty completion or a provider
failure each map to a fixed text the operator can read in place of a draft.
"""

import time
from typing import Any, Optional, Sequence

from google import genai

from messenger_pulse.config.constants import (
    DEFAULT_GEMINI_MODEL,
    FOLLOW_UP_EMPTY_TEXT,
    FOLLOW_UP_ERROR_TEXT,
    FOLLOW_UP_MISSING_KEY_TEXT,
    FOLLOW_UP_SELF_SPEAKER,
)
from messenger_pulse.models.conversation import Message
from messenger_pulse.models.types import MessageSender
from messenger_pulse.utils.logger import get_logger
from messenger_pulse.utils.metrics import MetricsCollector

PROMPT_TEMPLATE = """
You are a smart assistant for a Facebook Page.
Your task is to write a short, polite and friendly follow-up message.

Context: I talked with "{partner_name}" but they have not replied to my last message for more than 24 hours.
I need to revive the conversation without being pushy.

Conversation history:
{history}

Reply with the follow-up text only, without quotes or any introduction. The message must sound natural.
"""


def format_history(partner_name: str, history: Sequence[Message]) -> str:
    """One ``<speaker>: <text>`` line per message, oldest first."""
    lines = []
    for message in history:
        speaker = FOLLOW_UP_SELF_SPEAKER if message.sender == MessageSender.ME else partner_name
        lines.append(f"{speaker}: {message.text}")
    return "\n".join(lines)


def build_prompt(partner_name: str, history: Sequence[Message]) -> str:
    return PROMPT_TEMPLATE.format(
        partner_name=partner_name,
        history=format_history(partner_name, history),
    ).strip()


class FollowUpGenerator:
    """Drafts follow-up messages for stale conversations."""

    def __init__(
            self,
            api_key: Optional[str],
            model_name: str = DEFAULT_GEMINI_MODEL,
            metrics: Optional[MetricsCollector] = None,
            client: Any = None
    ):
        self.model_name = model_name
        self.metrics = metrics
        self.logger = get_logger(self.__class__.__name__)

        self.client = client
        if self.client is None and api_key:
            self.client = genai.Client(api_key=api_key)

        self.logger.info(
            "Follow-up generator initialized",
            model=model_name,
            enabled=self.enabled
        )

    @property
    def enabled(self) -> bool:
        return self.client is not None

    async def generate(self, partner_name: str, history: Sequence[Message]) -> str:
        """
        Draft a follow-up for ``partner_name`` given the thread so far.

        Returns:
            The generated text, or a fixed explanatory text when drafting
            is unavailable or fails
        """
        if not self.enabled:
            self._record("disabled")
            return FOLLOW_UP_MISSING_KEY_TEXT

        prompt = build_prompt(partner_name, history)
        started = time.time()

        try:
            response = await self._generate_content(prompt)
            text = (getattr(response, "text", None) or "").strip()
        except Exception as e:
            self.logger.error(
                "Follow-up generation failed",
                model=self.model_name,
                error=str(e)
            )
            self._record("error")
            return FOLLOW_UP_ERROR_TEXT

        if not text:
            self._record("empty")
            return FOLLOW_UP_EMPTY_TEXT

        self._record("generated")
        self.logger.info(
            "Follow-up drafted",
            model=self.model_name,
            history_length=len(history),
            processing_time_ms=int((time.time() - started) * 1000)
        )
        return text

    async def _generate_content(self, prompt: str) -> Any:
        return await self.client.aio.models.generate_content(
            model=self.model_name,
            contents=prompt
        )

    def _record(self, outcome: str) -> None:
        if self.metrics:
            self.metrics.record_follow_up(outcome)
