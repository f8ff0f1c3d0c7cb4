"""
Logistics Insights Client Module

Requests a short executive narrative for the current dashboard snapshot from
Gemini through the google-genai SDK.

The narrative is advisory only: every failure collapses to FALLBACK_INSIGHT
and nothing numeric depends on it.
"""

import os
import json
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional, Any
from dotenv import load_dotenv
from google import genai
from google.genai import errors, types
import logging

logger = logging.getLogger(__name__)

FALLBACK_INSIGHT = "AI Insights currently unavailable. Please check critical alerts manually."

SYSTEM_INSTRUCTION = "You are a senior logistics analyst. Be direct, professional, and data-driven."

PROMPT_TEMPLATE = (
    "Analyze this logistics data and provide a concise 3-bullet point executive summary "
    "highlighting critical bottlenecks, stock concerns, or practice performance. "
    "Focus on the most urgent \"Red\" items.\n\n"
    "Data Summary:\n"
    "{summary}"
)


class InsightServiceError(Exception):
    """Custom exception for insight service errors"""
    pass


class InsightClient:
    """
    Gemini client for logistics narratives.

    Reads GEMINI_API_KEY (or API_KEY), GEMINI_MODEL and INSIGHTS_TIMEOUT from
    the environment / .env file. Does not retry.
    """

    DEFAULT_MODEL = "gemini-3-flash-preview"
    DEFAULT_TIMEOUT = 30  # seconds

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        """
        Initialize the insight client.

        Args:
            api_key: Overrides the key from the environment
            model: Overrides the model from the environment
        """
        load_dotenv()

        self.api_key = api_key or os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
        self.model = model or os.getenv("GEMINI_MODEL", self.DEFAULT_MODEL)
        self.timeout = float(os.getenv("INSIGHTS_TIMEOUT", self.DEFAULT_TIMEOUT))

        if not self.api_key:
            raise ValueError(
                "Missing Gemini credentials. Please set GEMINI_API_KEY in .env file"
            )

        # HttpOptions.timeout is in milliseconds
        self.client = genai.Client(
            api_key=self.api_key,
            http_options=types.HttpOptions(timeout=int(self.timeout * 1000))
        )

        logger.info(f"Initialized insight client for model: {self.model}")

    def build_prompt(self, summary: Any) -> str:
        return PROMPT_TEMPLATE.format(summary=json.dumps(summary, indent=2))

    def generate(self, summary: Any) -> str:
        """
        Generate a narrative for a JSON-serializable summary.

        Args:
            summary: Dashboard snapshot

        Returns:
            Narrative text

        Raises:
            InsightServiceError: For API failures or an empty response
        """
        logger.debug(f"Requesting insights from {self.model}")

        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=self.build_prompt(summary),
                config=types.GenerateContentConfig(system_instruction=SYSTEM_INSTRUCTION)
            )
        except errors.APIError as e:
            raise InsightServiceError(f"Gemini API error ({e.code}): {e.message}")

        text = response.text
        if not text or not text.strip():
            raise InsightServiceError("Empty response text")

        return text


def get_logistics_insights(summary: Any, client: Optional[InsightClient] = None) -> str:
    """
    Best-effort narrative for a dashboard summary.

    Never raises: configuration, transport and response errors are logged
    and replaced with FALLBACK_INSIGHT.

    Args:
        summary: JSON-serializable dashboard snapshot
        client: Existing client to reuse (created from the environment if omitted)

    Returns:
        Narrative text or FALLBACK_INSIGHT
    """
    try:
        client = client or InsightClient()
        return client.generate(summary)
    except (InsightServiceError, ValueError, TypeError) as e:
        logger.error(f"Insight request failed: {e}")
        return FALLBACK_INSIGHT
    except Exception:
        logger.exception("Unexpected error requesting insights")
        return FALLBACK_INSIGHT


@dataclass(frozen=True)
class InsightResult:
    ticket: Any
    text: str


class InsightRequester:
    """
    Fire-and-forget insight requests on a single background worker.

    Each result carries the ticket it was submitted with so the caller can
    discard responses for a filter state that has since changed.
    """

    def __init__(self, client: Optional[InsightClient] = None, executor: Optional[ThreadPoolExecutor] = None):
        self.client = client
        self.executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="insights")

    def _run(self, ticket: Any, summary: Any) -> InsightResult:
        return InsightResult(ticket=ticket, text=get_logistics_insights(summary, self.client))

    def submit(self, ticket: Any, summary: Any) -> "Future[InsightResult]":
        logger.info(f"Submitting insight request for {ticket}")
        return self.executor.submit(self._run, ticket, summary)
