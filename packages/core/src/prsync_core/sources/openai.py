from __future__ import annotations

try:
    from openai import OpenAI as _OpenAI
except ImportError:
    _OpenAI = None  # type: ignore[assignment,misc]

from prsync_core.sources.base import ContentLoader, LLMReviewSource


class OpenAIReviewSource(LLMReviewSource):
    MODEL = "gpt-4o"
    TEMPERATURE = 0.2

    def __init__(self, api_key: str, content_loader: ContentLoader | None = None, max_chars: int = 20000):
        if _OpenAI is None:
            raise ImportError(
                "The 'openai' package is required for this review source. "
                "Install it with: pip install 'prsync[openai]'"
            )
        super().__init__(content_loader=content_loader, max_chars=max_chars)
        self.client = _OpenAI(api_key=api_key)

    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        response = self.client.chat.completions.create(
            model=self.MODEL,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
            response_format={"type": "json_object"},
        )
        return response.choices[0].message.content or ""
