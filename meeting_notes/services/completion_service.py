"""
Claude API service wrapper for text completions
"""
from anthropic import AsyncAnthropic, APIStatusError
from meeting_notes.config import get_settings
from typing import Optional

settings = get_settings()


class CompletionNotConfigured(RuntimeError):
    """No API credential - raised before any network call"""


class CompletionAPIError(RuntimeError):
    """The completion API answered with a non-success status"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class CompletionService:
    def __init__(self, api_key: Optional[str] = None):
        api_key = api_key if api_key is not None else (settings.ANTHROPIC_API_KEY or None)
        self.model = settings.CLAUDE_MODEL
        self.max_tokens = settings.CLAUDE_MAX_TOKENS
        self._available = bool(api_key)
        if self._available:
            self.client = AsyncAnthropic(api_key=api_key)
        else:
            self.client = None

    @property
    def is_available(self) -> bool:
        return self._available

    async def complete(
        self,
        prompt: str,
        temperature: float = 0.3,
        max_tokens: Optional[int] = None
    ) -> str:
        """
        Send a single-turn prompt and return the reply text verbatim
        """
        if not self._available or self.client is None:
            raise CompletionNotConfigured("Completion API key not configured: ANTHROPIC_API_KEY is not set")

        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens or self.max_tokens,
                temperature=temperature,
                messages=[{"role": "user", "content": prompt}]
            )
        except APIStatusError as e:
            raise CompletionAPIError(e.message, status_code=e.status_code) from e

        return "".join(
            block.text for block in response.content if getattr(block, "type", "text") == "text"
        )


# Singleton instance
completion_service = CompletionService()
