"""
Match reasoning

Generators explain a match in a couple of sentences. The scorer never
depends on them: generate_reasoning_with_fallback always returns text,
substituting a deterministic template when generation fails.
"""

import asyncio
import logging
from typing import Optional

import httpx

from ...config import AI_MODEL, OPENAI_API_KEY, OPENAI_BASE_URL, REASONING_TIMEOUT_SECONDS
from .schemas import MenteeProfile, MentorProfile

logger = logging.getLogger(__name__)

REASONING_MAX_TOKENS = 200


class ReasoningGenerationError(Exception):
    """Raised when a generator cannot produce reasoning text"""


class ReasoningGenerator:
    """Produces a short natural-language explanation for a scored match"""

    async def generate_reasoning(
        self, mentee: MenteeProfile, mentor: MentorProfile, score: int
    ) -> str:
        raise NotImplementedError


def build_reasoning_prompt(mentee: MenteeProfile, mentor: MentorProfile, score: int) -> str:
    industry = ", ".join(mentee.industry_focus) or "Not specified"
    expertise = ", ".join(mentor.expertise_areas) or "Not specified"

    return f"""You are an AI assistant helping to match startup founders with mentors.

Mentee Profile:
- Industry Focus: {industry}
- Startup Stage: {mentee.startup_stage or "Not specified"}

Mentor Profile:
- Name: {mentor.name or mentor.email or "Not specified"}
- Expertise Areas: {expertise}
- Bio: {mentor.bio or "No bio available"}

Match Score: {score}/100

Generate a brief, professional explanation (2-3 sentences) explaining why this mentor is a good match for this mentee. Focus on:
1. How the mentor's expertise aligns with the mentee's needs
2. Why this match would be valuable
3. What the mentee can expect to learn

Keep it concise and actionable."""


class LLMReasoningGenerator(ReasoningGenerator):
    """Reasoning from an OpenAI-compatible chat completions endpoint"""

    def __init__(
        self,
        api_key: Optional[str] = OPENAI_API_KEY,
        base_url: str = OPENAI_BASE_URL,
        model: str = AI_MODEL,
        timeout: float = REASONING_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.transport = transport

    async def generate_reasoning(
        self, mentee: MenteeProfile, mentor: MentorProfile, score: int
    ) -> str:
        if not self.api_key:
            raise ReasoningGenerationError("OPENAI_API_KEY not configured")

        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": build_reasoning_prompt(mentee, mentor, score)}],
            "max_tokens": REASONING_MAX_TOKENS,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(
                f"{self.base_url}/chat/completions", json=payload, headers=headers
            )

        if response.status_code != 200:
            raise ReasoningGenerationError(
                f"Text generation failed: HTTP {response.status_code}"
            )

        try:
            text = response.json()["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise ReasoningGenerationError("Unexpected text generation response") from e

        return (text or "").strip()


def fallback_reasoning(mentee: MenteeProfile, mentor: MentorProfile) -> str:
    """Templated reasoning; exact label match between mentor expertise and mentee industries"""
    expertise_match = any(exp in mentee.industry_focus for exp in mentor.expertise_areas)
    if expertise_match:
        return (
            f"Strong expertise match in {' and '.join(mentor.expertise_areas)}. "
            "This mentor has relevant experience that aligns with your startup stage and industry focus."
        )
    return "This mentor offers valuable insights based on their background and expertise areas."


async def generate_reasoning_with_fallback(
    generator: Optional[ReasoningGenerator],
    mentee: MenteeProfile,
    mentor: MentorProfile,
    score: int,
    timeout: float = REASONING_TIMEOUT_SECONDS,
) -> str:
    """Ask the generator for reasoning, never raising and never returning blank text"""
    if generator is None:
        return fallback_reasoning(mentee, mentor)

    try:
        text = await asyncio.wait_for(
            generator.generate_reasoning(mentee, mentor, score), timeout=timeout
        )
    except asyncio.TimeoutError:
        logger.warning(
            f"⚠️ Reasoning timed out after {timeout}s for mentee {mentee.id} / mentor {mentor.id}"
        )
        return fallback_reasoning(mentee, mentor)
    except Exception as e:
        logger.warning(
            f"⚠️ Reasoning generation failed for mentee {mentee.id} / mentor {mentor.id}: {e}"
        )
        return fallback_reasoning(mentee, mentor)

    if not text or not text.strip():
        logger.warning(f"⚠️ Empty reasoning for mentee {mentee.id} / mentor {mentor.id}")
        return fallback_reasoning(mentee, mentor)

    return text.strip()
