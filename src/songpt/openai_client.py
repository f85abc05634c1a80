"""
OpenAI Client for song suggestions.

Sends a themed prompt to the chat completions API and parses the reply into
a list of "Song Title Artist Name" strings. Exactly one request is made per
call: the SDK's built-in retries are disabled.
"""

import json
import logging
from typing import Any, List, Optional, Sequence

from openai import APIError, AsyncOpenAI

from ._prompt_builders import build_keywords_prompt, build_songs_prompt
from .exceptions import (
    InvalidArgumentError,
    UpstreamMalformedPayloadError,
    UpstreamUnavailableError,
)

logger = logging.getLogger(__name__)

DEFAULT_GPT_MODEL = "gpt-3.5-turbo"
DEFAULT_NUMBER_OF_SUGGESTIONS = 10


class OpenAIClient:
    """Thin async client around the chat completions endpoint.

    Example:
        >>> async with OpenAIClient(api_key="sk-...") as client:
        ...     titles = await client.generate_suggestions(prompt)
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_GPT_MODEL,
        base_url: Optional[str] = None,
    ):
        """
        Initialize OpenAI client.

        Args:
            api_key: OpenAI API key.
            model: Chat model to use (default: "gpt-3.5-turbo").
            base_url: Optional API base URL override.

        Raises:
            InvalidArgumentError: If api_key or model is empty
        """
        if not api_key:
            raise InvalidArgumentError("No OpenAI API key supplied.")
        if not model:
            raise InvalidArgumentError("No GPT model supplied.")

        self.model = model
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, max_retries=0)

    async def complete(self, prompt: str) -> str:
        """
        Send a single user prompt and return the message content.

        Args:
            prompt: Prompt text.

        Returns:
            Content of the first choice.

        Raises:
            UpstreamUnavailableError: If the API call fails or the response has no content
        """
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
            )
        except APIError as e:
            logger.error("OpenAI request failed: %s", e)
            raise UpstreamUnavailableError(
                "Could not call OpenAI API. Make sure your API key is valid and that you "
                "have not exceeded your API usage limits."
            ) from e

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError):
            content = None

        if not content:
            logger.error("OpenAI response has no message content")
            raise UpstreamUnavailableError(
                "Invalid response from OpenAI. Make sure your API key is valid and that you "
                "have not exceeded your API usage limits."
            )

        return content

    async def generate_suggestions(self, prompt: str) -> List[str]:
        """
        Ask the model for songs and return the parsed titles.

        Raises:
            UpstreamUnavailableError: If the API call fails or returns no content
            UpstreamMalformedPayloadError: If the content is not a JSON array
        """
        content = await self.complete(prompt)
        suggestions = parse_suggestions(content)
        logger.info(f"Received {len(suggestions)} song suggestions from {self.model}")
        return suggestions

    async def close(self) -> None:
        await self.client.close()

    async def __aenter__(self) -> "OpenAIClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def filter_suggestions(items: Sequence[Any]) -> List[str]:
    """Keep non-empty strings, in their original order."""
    return [item for item in items if isinstance(item, str) and len(item) > 0]


def parse_suggestions(content: str) -> List[str]:
    """
    Parse model output into a list of titles.

    Args:
        content: Raw message content, expected to be a JSON array of strings.

    Returns:
        Filtered list of titles.

    Raises:
        UpstreamMalformedPayloadError: If content is not a JSON array
    """
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as e:
        logger.warning("Could not parse OpenAI content as JSON: %r", content[:200])
        raise UpstreamMalformedPayloadError(
            "Could not parse response from OpenAI. GPT may at times return invalid JSON."
        ) from e

    if not isinstance(parsed, list):
        logger.warning("OpenAI content is JSON but not an array: %s", type(parsed).__name__)
        raise UpstreamMalformedPayloadError(
            "Could not parse response from OpenAI. GPT may at times return invalid JSON."
        )

    return filter_suggestions(parsed)


async def generate_suggestions(
    openai_api_key: str,
    prompt: str,
    number_of_suggestions: int = DEFAULT_NUMBER_OF_SUGGESTIONS,
    gpt_model: str = DEFAULT_GPT_MODEL,
) -> List[str]:
    """
    Call OpenAI once with a prepared prompt and return the suggested titles.

    Args:
        openai_api_key: OpenAI API key.
        prompt: Prompt to send.
        number_of_suggestions: Number of suggestions requested in the prompt.
        gpt_model: Chat model to use.

    Returns:
        List of suggested "Title Artist" strings.

    Raises:
        InvalidArgumentError: If any argument is empty or out of range
        UpstreamUnavailableError: If OpenAI cannot be reached or returns no content
        UpstreamMalformedPayloadError: If the content is not a JSON array
    """
    if not openai_api_key:
        raise InvalidArgumentError("No OpenAI API key supplied.")
    if not prompt:
        raise InvalidArgumentError("No prompt supplied.")
    if not number_of_suggestions or number_of_suggestions < 1:
        raise InvalidArgumentError("Invalid number of suggestions.")
    if not gpt_model:
        raise InvalidArgumentError("No GPT model supplied.")

    async with OpenAIClient(api_key=openai_api_key, model=gpt_model) as client:
        return await client.generate_suggestions(prompt)


async def generate_suggestions_based_on_songs(
    openai_api_key: str,
    song_titles: Sequence[str],
    number_of_suggestions: int = DEFAULT_NUMBER_OF_SUGGESTIONS,
    gpt_model: str = DEFAULT_GPT_MODEL,
) -> List[str]:
    """Suggest songs that fit alongside the given song titles."""
    if not song_titles:
        raise InvalidArgumentError("No song titles supplied.")

    prompt = build_songs_prompt(song_titles, number_of_suggestions)
    return await generate_suggestions(openai_api_key, prompt, number_of_suggestions, gpt_model)


async def generate_suggestions_based_on_keywords(
    openai_api_key: str,
    keywords: str,
    number_of_suggestions: int = DEFAULT_NUMBER_OF_SUGGESTIONS,
    gpt_model: str = DEFAULT_GPT_MODEL,
) -> List[str]:
    """Suggest songs for a theme described by keywords."""
    if not keywords:
        raise InvalidArgumentError("No keywords supplied.")

    prompt = build_keywords_prompt(keywords, number_of_suggestions)
    return await generate_suggestions(openai_api_key, prompt, number_of_suggestions, gpt_model)
