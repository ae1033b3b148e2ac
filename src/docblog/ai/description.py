"""Post description generation using Gemini."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from google import genai

LOGGER = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-1.5-pro"
DEFAULT_PROMPT = (
    "Summarize content of the HTML blog post attached below. "
    "Use only plain text in response. Use up to 5 sentences. "
    'Skip "this blog post outlines" at the beginning.'
)


@dataclass(slots=True)
class GeminiOptions:
    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    prompt: Optional[str] = None


class GeminiDescriber:
    """Generate a short plain-text description for an exported post."""

    def __init__(self, options: GeminiOptions) -> None:
        api_key = options.api_key or os.environ.get("GEMINI_API_KEY")
        if not api_key:
            raise ValueError("GEMINI_API_KEY must be provided or set in environment")
        self.client = genai.Client(api_key=api_key)
        self.model = options.model
        self.prompt = options.prompt or DEFAULT_PROMPT

    def __call__(self, content: bytes) -> str:
        text = content.decode("utf-8", errors="replace")
        LOGGER.info("Generating description with %s", self.model)
        response = self.client.models.generate_content(
            model=self.model,
            contents=f"{self.prompt}\n\n```html\n{text}\n```",
        )
        return (response.text or "").strip()
