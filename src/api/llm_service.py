"""OpenAI completion service with user-facing error classification"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import openai

from .config import COMMAND_PROMPT_TEMPLATE, SYSTEM_PROMPT

log = logging.getLogger(__name__)

# Substring patterns checked in order against the provider error message
COMMAND_ERROR_MESSAGES: List[Tuple[Tuple[str, ...], str]] = [
    (("401", "Unauthorized"), "Invalid OpenAI API key. Please check your key in settings."),
    (("429", "rate limit"), "OpenAI rate limit exceeded. Please try again later."),
    (("quota",), "OpenAI quota exceeded. Please check your billing."),
    (("model",), "Model access denied. Try using gpt-3.5-turbo instead."),
]

KEY_TEST_ERROR_MESSAGES: List[Tuple[Tuple[str, ...], str]] = [
    (("401", "Unauthorized"), "Invalid API key - check your key format"),
    (("429",), "Rate limit exceeded"),
    (("quota",), "Quota exceeded - check billing"),
    (("model",), "Model access issue - try gpt-3.5-turbo"),
    (("missing",), "API key not properly configured"),
]

KEY_TEST_PROMPT = "Say 'API test successful' in exactly those words."
DEBUG_TEST_PROMPT = "Hello, respond with exactly: 'Test successful'"


def classify_error(
    message: str,
    patterns: List[Tuple[Tuple[str, ...], str]],
    default: str,
) -> str:
    """Return the first mapped message whose pattern occurs in the error text"""
    for needles, mapped in patterns:
        if any(needle in message for needle in needles):
            return mapped
    return default


class LLMServiceError(Exception):
    """Completion request failed at the provider"""

    def __init__(self, provider_message: str):
        self.provider_message = provider_message
        super().__init__(provider_message)

    @property
    def user_message(self) -> str:
        """Remapped message for the process-command route"""
        summary = classify_error(self.provider_message, COMMAND_ERROR_MESSAGES, "OpenAI API error")
        return f"{summary}: {self.provider_message}"

    @property
    def key_test_message(self) -> str:
        """Remapped message for the key test route"""
        summary = classify_error(self.provider_message, KEY_TEST_ERROR_MESSAGES, "Connection failed")
        return f"{summary}: {self.provider_message[:100] or 'Unknown error'}"


@dataclass
class Completion:
    """Text returned by the provider plus token usage"""
    text: str
    usage: Dict[str, Any] = field(default_factory=dict)


class LLMService:
    """Thin wrapper over the OpenAI chat completions API"""

    def __init__(self, model: str = "gpt-4o", max_tokens: int = 1000, temperature: float = 0.7):
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    def _client(self, api_key: str) -> openai.AsyncOpenAI:
        # Keys arrive per request from the client, so no shared client instance
        return openai.AsyncOpenAI(api_key=api_key)

    async def complete(
        self,
        api_key: str,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> Completion:
        """
        Run a single completion

        Args:
            api_key: OpenAI key to authenticate with
            prompt: User prompt
            system: Optional system prompt
            max_tokens: Override for the default token limit
            temperature: Override for the default temperature

        Returns:
            Completion text and usage

        Raises:
            LLMServiceError: on any provider or transport failure
        """
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        client = self._client(api_key)
        try:
            result = await client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=max_tokens or self.max_tokens,
                temperature=self.temperature if temperature is None else temperature,
            )
        except openai.OpenAIError as e:
            log.error(f"OpenAI API error: {e}")
            raise LLMServiceError(str(e)) from e
        finally:
            await client.close()

        text = (result.choices[0].message.content or "").strip()
        usage = result.usage.model_dump() if result.usage else {}

        log.debug("OpenAI response received", extra={"data": {"response_length": len(text)}})
        return Completion(text=text, usage=usage)

    async def respond_to_command(self, api_key: str, command: str, tools: List[str]) -> str:
        """Generate the assistant reply to a user command"""
        prompt = COMMAND_PROMPT_TEMPLATE.format(command=command, tools=", ".join(tools))
        completion = await self.complete(api_key, prompt, system=SYSTEM_PROMPT)
        return completion.text

    async def check_key(self, api_key: str) -> Dict[str, str]:
        """
        Verify a key with a tiny completion

        Returns:
            Dict with status (success, warning, error) and message
        """
        try:
            completion = await self.complete(api_key, KEY_TEST_PROMPT, max_tokens=10)
        except LLMServiceError as e:
            return {"status": "error", "message": e.key_test_message}

        if "api test successful" in completion.text.lower():
            return {"status": "success", "message": "OpenAI connection verified"}
        return {"status": "warning", "message": f"OpenAI responded: {completion.text}"}
