"""LLM client for last-resort skill classification.

Uses LiteLLM to map a free-text skill onto the controlled vocabulary.
"""

from __future__ import annotations

import json
import logging
import os
import time
import warnings
from collections.abc import Iterable
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field, ValidationError

from matchscore.scoring.config import ScoringConfig, get_scoring_config

logger = logging.getLogger(__name__)

warnings.filterwarnings(
    "ignore",
    message=r"(?s)^Pydantic serializer warnings:.*",
    category=UserWarning,
)


# LiteLLM loads `.env` into process environment by default (DEV mode).
# We default to PRODUCTION unless the user explicitly opted into DEV.
os.environ.setdefault("LITELLM_MODE", "PRODUCTION")


CLASSIFIER_SYSTEM_PROMPT = """You are a skill normalization assistant.

You must follow these rules:
- Map the input skill to the closest term from the provided vocabulary.
- If nothing in the vocabulary is a reasonable match, return "canonical": null.
- Report your confidence as an integer from 0 to 100.
- Output MUST be valid JSON only (no markdown):
  {"canonical": string | null, "confidence": integer | null, "category": string | null}
"""


class ClassificationUnavailable(Exception):
    """Raised when the classification collaborator cannot answer."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.original_error = original_error


class SkillClassification(BaseModel):
    """Structured answer from a classification collaborator."""

    canonical: str | None = Field(default=None, description="Best-guess canonical term")
    confidence: float | None = Field(default=None, ge=0.0, le=100.0)
    category: str | None = Field(default=None)


@runtime_checkable
class SkillClassifier(Protocol):
    """Anything that can classify a raw skill string.

    Implementations raise ``ClassificationUnavailable`` when they cannot
    answer (timeout, provider error, malformed response).
    """

    def classify(self, raw: str) -> SkillClassification: ...


def build_classification_prompt(raw: str, vocabulary: Iterable[str]) -> str:
    """Build the user prompt for one skill."""
    terms = sorted(set(vocabulary))
    return "\n".join(
        [
            f"Vocabulary: {json.dumps(terms)}",
            f"Skill: {json.dumps(raw)}",
        ]
    )


class LLMSkillClassifier:
    """LiteLLM-backed SkillClassifier."""

    def __init__(
        self,
        config: ScoringConfig | None = None,
        vocabulary: Iterable[str] = (),
    ) -> None:
        self.config = config or get_scoring_config()
        self.vocabulary = list(vocabulary)
        self._setup_provider_env()

    def _setup_provider_env(self) -> None:
        """Set up provider-specific environment variables."""
        if self.config.llm_base_url and self.config.llm_provider == "anthropic":
            base_url = self.config.llm_base_url.rstrip("/")
            if base_url.endswith("/v1"):
                base_url = base_url[:-3]
            os.environ["ANTHROPIC_BASE_URL"] = base_url
            if self.config.llm_api_key:
                os.environ["ANTHROPIC_API_KEY"] = self.config.llm_api_key

    def _get_model_name(self) -> str:
        """Return provider-qualified model name for LiteLLM routing."""
        if self.config.llm_provider == "anthropic":
            if "/" in self.config.llm_model:
                return self.config.llm_model
            return f"anthropic/{self.config.llm_model}"

        if self.config.llm_base_url:
            if "/" in self.config.llm_model:
                return self.config.llm_model
            return f"openai/{self.config.llm_model}"

        if self.config.llm_provider == "openai":
            return self.config.llm_model

        return f"{self.config.llm_provider}/{self.config.llm_model}"

    def classify(self, raw: str) -> SkillClassification:
        """Classify one raw skill string."""
        from litellm.exceptions import Timeout

        messages = [
            {"role": "system", "content": CLASSIFIER_SYSTEM_PROMPT},
            {"role": "user", "content": build_classification_prompt(raw, self.vocabulary)},
        ]

        last_error: Exception | None = None
        for attempt in range(self.config.llm_max_retries + 1):
            try:
                response = self._call_completion(
                    messages=messages,
                    response_format=SkillClassification,
                )
                return self._parse_response(response)

            except ClassificationUnavailable:
                raise

            except Timeout as e:
                raise ClassificationUnavailable(
                    "Skill classification timed out "
                    f"(timeout={self.config.llm_timeout}s).",
                    e,
                ) from e

            except Exception as e:
                last_error = e
                if attempt < self.config.llm_max_retries:
                    delay = min(0.5 * (2**attempt), 8.0)
                    logger.warning(
                        "Skill classification failed (attempt %s), retrying in %.1fs: %s",
                        attempt + 1,
                        delay,
                        e,
                    )
                    time.sleep(delay)
                    continue
                raise ClassificationUnavailable(
                    f"Skill classification failed after retries: {e}", e
                ) from e

        raise ClassificationUnavailable(
            f"Skill classification failed: {last_error}", last_error
        )

    def _call_completion(
        self,
        *,
        messages: list[dict[str, str]],
        response_format: type[BaseModel] | None = None,
    ):
        from litellm import completion

        kwargs: dict[str, Any] = {
            "model": self._get_model_name(),
            "messages": messages,
            "timeout": self.config.llm_timeout,
        }

        if self.config.llm_api_key:
            kwargs["api_key"] = self.config.llm_api_key

        if self.config.llm_base_url and self.config.llm_provider != "anthropic":
            kwargs["base_url"] = self.config.llm_base_url

        if response_format is not None:
            kwargs["response_format"] = response_format

        return completion(**kwargs)

    def _parse_response(self, response) -> SkillClassification:
        message = response.choices[0].message
        content = getattr(message, "content", None)

        if content is None:
            tool_calls = getattr(message, "tool_calls", None) or []
            if tool_calls:
                function = getattr(tool_calls[0], "function", None)
                arguments = getattr(function, "arguments", None)
                if isinstance(arguments, str) and arguments.strip():
                    content = arguments

        if content is None:
            raise ClassificationUnavailable("LLM returned no content to parse.")

        content = _extract_json_object(str(content))

        try:
            return SkillClassification.model_validate_json(content)
        except ValidationError as e:
            raise ClassificationUnavailable(
                f"Failed to parse LLM response - validation error: {e}", e
            ) from e


def _extract_json_object(content: str) -> str:
    content = content.strip()

    if content.startswith("```"):
        first_newline = content.find("\n")
        if first_newline != -1:
            content = content[first_newline + 1 :]
        if content.endswith("```"):
            content = content[:-3]
        content = content.strip()

    if content.startswith("{"):
        return content

    start = content.find("{")
    if start == -1:
        return content

    depth = 0
    for idx in range(start, len(content)):
        ch = content[idx]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return content[start : idx + 1].strip()
    return content
