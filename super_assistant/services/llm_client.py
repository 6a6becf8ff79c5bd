"""
LLM-backed intent classification and slot normalization.

Both calls go to an OpenAI-compatible chat completion endpoint (Azure
OpenAI when ``AZURE_OPENAI_ENDPOINT`` is set). Neither ever raises into the
dialogue: transport failures become a degraded ``general_question`` result
or an empty hint, and non-JSON classifier output is read as a plain reply.
"""

import asyncio
import json
import re
from typing import Optional, Union

import openai

from super_assistant.config import ModelConfig, settings
from super_assistant.conversation.intents import ClassifierResult, Intent
from super_assistant.conversation.slot_extractor import SlotKind, clean_llm_value
from super_assistant.logging_context import get_session_id, get_session_logger
from super_assistant.prompts.prompt_templates import build_fallback_reply
from super_assistant.prompts.system_prompts import CLASSIFIER_SYSTEM_PROMPT, SLOT_PROMPTS

logger = get_session_logger(__name__)

LLMClient = Union[openai.AsyncOpenAI, openai.AsyncAzureOpenAI]

_FENCE_OPEN_RE = re.compile(r"^```[a-zA-Z]*\n?")
_FENCE_CLOSE_RE = re.compile(r"```$")


def build_llm_client(config: Optional[ModelConfig] = None) -> LLMClient:
    """Create the async client; Azure when an endpoint is configured.

    Credentials are read from the environment by the SDK
    (``OPENAI_API_KEY`` / ``AZURE_OPENAI_API_KEY``).
    """
    config = config or settings.model
    if config.uses_azure:
        logger.info("Using Azure OpenAI deployment '%s'", config.deployment)
        return openai.AsyncAzureOpenAI(
            azure_endpoint=config.azure_endpoint,
            api_version=config.azure_api_version,
            timeout=config.request_timeout_sec,
        )
    logger.info("Using OpenAI model '%s'", config.llm_model)
    return openai.AsyncOpenAI(timeout=config.request_timeout_sec)


def strip_code_fences(raw: str) -> str:
    """Remove a surrounding markdown code block, if any."""
    text = raw.strip()
    if text.startswith("```"):
        text = _FENCE_CLOSE_RE.sub("", _FENCE_OPEN_RE.sub("", text)).strip()
    return text


def parse_classifier_output(raw: str) -> ClassifierResult:
    """
    Read the classifier's ``{"intent": ..., "response": ...}`` reply.

    Output that is not a JSON object is surfaced verbatim as the reply with
    the generic ``general_question`` intent.
    """
    text = strip_code_fences(raw)
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        logger.debug("Classifier output is not JSON; treating as plain reply")
        return ClassifierResult.from_label(Intent.GENERAL_QUESTION.value, text)

    if not isinstance(parsed, dict):
        return ClassifierResult.from_label(Intent.GENERAL_QUESTION.value, text)

    label = str(parsed.get("intent") or Intent.GENERAL_QUESTION.value)
    reply = str(parsed.get("response") or text)
    return ClassifierResult.from_label(label, reply)


class _ChatCompletionCaller:
    """Shared lazy client handling for the two LLM calls."""

    def __init__(self, client: Optional[LLMClient] = None, config: Optional[ModelConfig] = None) -> None:
        self._client = client
        self.config = config or settings.model

    @property
    def client(self) -> LLMClient:
        if self._client is None:
            self._client = build_llm_client(self.config)
        return self._client

    async def _complete(self, system_prompt: str, message: str, temperature: float, max_tokens: int) -> str:
        response = await asyncio.wait_for(
            self.client.chat.completions.create(
                model=self.config.deployment,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": message},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
                user=get_session_id(),
            ),
            timeout=self.config.request_timeout_sec,
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


class IntentClassifier(_ChatCompletionCaller):
    """Classifies a member utterance into an intent and a spoken reply."""

    async def classify(self, message: str) -> ClassifierResult:
        try:
            raw = await self._complete(
                CLASSIFIER_SYSTEM_PROMPT,
                message,
                self.config.classifier_temperature,
                self.config.classifier_max_tokens,
            )
        except (openai.OpenAIError, asyncio.TimeoutError) as e:
            logger.error("Intent classification failed: %s", e)
            return ClassifierResult(
                intent=Intent.GENERAL_QUESTION,
                reply=build_fallback_reply(),
                label=Intent.GENERAL_QUESTION.value,
                degraded=True,
            )

        result = parse_classifier_output(raw)
        logger.info("Classified intent: %s", result.label)
        return result


class SlotNormalizer(_ChatCompletionCaller):
    """Asks the LLM to rewrite a spoken slot value into its written form."""

    async def normalize(self, slot_kind: SlotKind, message: str) -> str:
        try:
            raw = await self._complete(
                SLOT_PROMPTS[slot_kind.value],
                message,
                self.config.slot_temperature,
                self.config.slot_max_tokens,
            )
        except (openai.OpenAIError, asyncio.TimeoutError) as e:
            logger.warning("Slot normalization for %s failed: %s", slot_kind.value, e)
            return ""
        return clean_llm_value(raw)


class PassthroughSlotNormalizer:
    """Offline normalizer: the transcript is its own hint."""

    async def normalize(self, slot_kind: SlotKind, message: str) -> str:
        return message.strip()
