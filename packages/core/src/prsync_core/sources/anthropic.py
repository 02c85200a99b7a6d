from __future__ import annotations

from prsync_core.sources.base import ContentLoader, LLMReviewSource


class AnthropicReviewSource(LLMReviewSource):
    MODEL = "claude-sonnet-4-20250514"
    TEMPERATURE = 0.3

    def __init__(self, api_key: str, content_loader: ContentLoader | None = None, max_chars: int = 20000):
        try:
            from anthropic import Anthropic
        except ImportError:
            raise ImportError(
                "The 'anthropic' package is required for this review source. "
                "Install it with: pip install 'prsync[anthropic]'"
            )
        super().__init__(content_loader=content_loader, max_chars=max_chars)
        self.client = Anthropic(api_key=api_key)

    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        # anthropic is optional; __init__ already validated it is installed.
        from anthropic.types import TextBlock

        response = self.client.messages.create(
            model=self.MODEL,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        text_blocks = [block.text for block in response.content if isinstance(block, TextBlock)]
        return "".join(text_blocks).strip()
