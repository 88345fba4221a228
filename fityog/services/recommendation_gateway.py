"""
AI Recommendation Gateway

Turns a free-text description of fitness goals or health concerns into a
structured set of yoga asanas, exercises and reading resources by asking
an OpenAI chat model for a JSON object of a fixed shape.

Design goals:
- One request per call: no retries, no caching. Replies are
  non-deterministic, so the same prompt may give different answers.
- Bounded latency: the client carries an explicit timeout.
- Every failure becomes one of two typed errors, logged once with the
  prompt and the upstream payload. Callers only ever see a short
  description.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from openai import OpenAI, OpenAIError
from pydantic import ValidationError as PydanticValidationError

from fityog.core.config import Settings
from fityog.core.exceptions import (
    RecommendationError,
    ResponseFormatError,
    UpstreamServiceError,
)
from fityog.schemas import Recommendation, User

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_TIMEOUT_S = 30.0

MIN_ASANAS = 2
MIN_EXERCISES = 2
MIN_RESOURCES = 1


class RecommendationGateway:
    """OpenAI-backed source of personalized yoga and exercise recommendations."""

    SYSTEM_INSTRUCTIONS = f"""You are an experienced yoga teacher and fitness coach. You know yoga asanas, exercise physiology and good wellness reading.

The user will describe fitness goals or health concerns. Reply with ONE JSON object and nothing else, using exactly these top-level keys:

{{
  "message": "short personal note that speaks to what the user described",
  "asanas": [
    {{
      "name": "asana name",
      "duration": <whole minutes, greater than 0>,
      "benefits": ["benefit", "..."],
      "difficulty": "beginner" | "intermediate" | "advanced",
      "instructions": ["step 1", "step 2", "..."]
    }}
  ],
  "exercises": [
    {{
      "name": "exercise name",
      "duration": <whole minutes, greater than 0>,
      "benefits": ["benefit", "..."],
      "difficulty": "beginner" | "intermediate" | "advanced",
      "instructions": ["step 1", "step 2", "..."]
    }}
  ],
  "resources": [
    {{
      "title": "resource title",
      "type": "book" | "article",
      "description": "one or two sentences on why it helps"
    }}
  ]
}}

Rules:
- Include at least {MIN_ASANAS} asanas, at least {MIN_EXERCISES} exercises and at least {MIN_RESOURCES} resource.
- Every benefits and instructions list has at least one entry; instructions are in the order to perform them.
- Prefer safe, beginner-friendly options unless the user asks for advanced work."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        client: Any = None,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout_s = timeout_s
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "RecommendationGateway":
        return cls(
            api_key=settings.OPENAI_API_KEY,
            model=settings.OPENAI_MODEL,
            timeout_s=settings.AI_REQUEST_TIMEOUT_S,
        )

    def _get_client(self):
        if self._client is None:
            if not self.api_key:
                raise UpstreamServiceError(
                    "AI service unavailable", upstream_message="OPENAI_API_KEY not configured"
                )
            # Retries are the caller's decision
            self._client = OpenAI(api_key=self.api_key, timeout=self.timeout_s, max_retries=0)
        return self._client

    def recommend(self, prompt: str, user: User) -> Recommendation:
        """
        Ask the model for recommendations for `prompt`.

        `user` is the authenticated caller; it is logged but not sent to the model.

        Raises:
            UpstreamServiceError: the provider could not be reached or refused the request.
            ResponseFormatError: the reply was missing or not the expected shape.
        """
        if not prompt or not prompt.strip():
            raise ValueError("prompt is required")

        logger.info(
            "AI recommendation requested",
            extra={"extra_fields": {"user_id": user.id, "prompt_chars": len(prompt)}},
        )

        content: Optional[str] = None
        try:
            content = self._complete(prompt)
            result = self.parse_reply(content)
        except RecommendationError as e:
            logger.error(
                f"AI recommendation failed: {type(e).__name__}: {e.upstream_message}",
                extra={
                    "extra_fields": {
                        "user_id": user.id,
                        "prompt": prompt,
                        "upstream": content if content is not None else e.upstream_message,
                        "error_code": e.error_code,
                    }
                },
            )
            raise

        logger.info(
            "AI recommendation returned",
            extra={
                "extra_fields": {
                    "user_id": user.id,
                    "asanas": len(result.asanas),
                    "exercises": len(result.exercises),
                    "resources": len(result.resources),
                }
            },
        )
        return result

    def _complete(self, prompt: str) -> Optional[str]:
        client = self._get_client()
        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": self.SYSTEM_INSTRUCTIONS},
                    {"role": "user", "content": prompt},
                ],
                response_format={"type": "json_object"},
            )
        except OpenAIError as e:
            raise UpstreamServiceError("AI service unavailable", upstream_message=str(e)) from e

        if not response.choices:
            return None
        return response.choices[0].message.content

    @staticmethod
    def parse_reply(content: Optional[str]) -> Recommendation:
        """Validate a raw model reply into a `Recommendation`."""
        if not content or not content.strip():
            raise ResponseFormatError(
                "AI response was empty", upstream_message="No response content from model"
            )

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ResponseFormatError(
                "AI response was not valid JSON", upstream_message=str(e)
            ) from e

        if not isinstance(data, dict):
            raise ResponseFormatError(
                "AI response had the wrong shape", upstream_message="Reply JSON is not an object"
            )

        try:
            return Recommendation.model_validate(data)
        except PydanticValidationError as e:
            raise ResponseFormatError(
                "AI response had the wrong shape", upstream_message=str(e)
            ) from e
