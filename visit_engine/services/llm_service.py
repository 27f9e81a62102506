"""
LLM Service for schema-constrained completions and medication review
"""
from typing import Any, Dict, List, Optional

import httpx
import instructor
from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI
from tenacity import retry, retry_if_exception, retry_if_exception_type, stop_after_attempt, wait_exponential

from visit_engine.config import settings, Settings
from visit_engine.core.exceptions import ExternalServiceError
from visit_engine.core.logging import get_logger
from visit_engine.models.medication import AdvisorFinding, AdvisorReport

logger = get_logger(__name__)

# Define which exceptions should trigger a retry
retryable_exceptions = (
    httpx.TimeoutException,
    APITimeoutError,
    APIConnectionError,
)


def is_server_error(exception):
    """Return True if the exception is an OpenAI 5xx error"""
    return isinstance(exception, APIStatusError) and exception.status_code >= 500


llm_retry = retry(
    wait=wait_exponential(multiplier=1, min=2, max=30),
    stop=stop_after_attempt(settings.max_retries),
    retry=(retry_if_exception_type(retryable_exceptions) | retry_if_exception(is_server_error)),
    before_sleep=lambda retry_state: logger.warning(
        f"Retrying OpenAI API call, attempt {retry_state.attempt_number}..."
    ),
    reraise=True,
)


def build_openai_client(config: Settings = settings) -> Optional[AsyncOpenAI]:
    """Returns a configured client, or None when no API key is set."""
    if not config.openai_api_key:
        logger.warning("OpenAI API key is not configured; generative calls will fail")
        return None
    return AsyncOpenAI(
        api_key=config.openai_api_key,
        organization=config.openai_organization,
        timeout=config.llm_timeout,
    )


class LLMService:
    """Generative model access for summarization and medication review."""

    def __init__(self, client: Optional[AsyncOpenAI] = None, config: Settings = settings):
        self.client = client if client is not None else build_openai_client(config)
        # Patched client enables the response_model keyword
        self.structured_client = instructor.from_openai(self.client) if self.client is not None else None
        self.temperature = config.llm_temperature
        self.max_tokens = config.llm_max_tokens
        self.summary_model = config.summary_model
        self.interaction_model = config.interaction_model

    def _require_client(self):
        if self.client is None:
            raise ExternalServiceError("OpenAI API key is not configured.")

    @llm_retry
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        json_schema: Dict[str, Any],
        schema_name: str,
        model: Optional[str] = None,
    ) -> str:
        """
        Run a completion constrained to `json_schema` and return the raw JSON text.
        Parsing is left to the caller.
        """
        self._require_client()
        model = model or self.summary_model
        logger.info(f"Starting schema-constrained completion with model: {model}, schema: {schema_name}")

        response = await self.client.chat.completions.create(
            model=model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            response_format={
                "type": "json_schema",
                "json_schema": {"name": schema_name, "schema": json_schema, "strict": True},
            },
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        )

        content = response.choices[0].message.content if response.choices else None
        logger.info("Schema-constrained completion finished.")
        return (content or "").strip()

    @llm_retry
    async def review_medications(
        self, current_medications: List[str], new_medications: List[str]
    ) -> List[AdvisorFinding]:
        """
        Ask the model to flag interaction or duplication concerns the static
        tables may have missed.
        """
        self._require_client()
        logger.info(f"Starting generative medication review with model: {self.interaction_model}")

        report = await self.structured_client.chat.completions.create(
            model=self.interaction_model,
            response_model=AdvisorReport,
            max_retries=1,
            temperature=0.0,
            messages=[
                {"role": "system", "content": self._build_review_prompt()},
                {
                    "role": "user",
                    "content": (
                        f"Current medications: {', '.join(current_medications)}\n"
                        f"New medications from visit: {', '.join(new_medications)}"
                    ),
                },
            ],
        )

        logger.info(f"Generative medication review returned {len(report.warnings)} finding(s).")
        return report.warnings

    @staticmethod
    def _build_review_prompt() -> str:
        return """
You are a medical AI assistant specialized in medication safety.

Analyze the patient's current medications together with the new medications from a visit for:
1. Drug-drug interactions
2. Therapeutic duplication (same drug class)
3. Contraindications

For every concern provide severity (critical, major, moderate or minor), kind (interaction,
duplication or contraindication), both medication names, a brief description and a
recommendation. Recommendations must tell the patient to discuss the concern with their
healthcare provider and must never contain dosing instructions. Set drugClass for duplications.

Only include warnings if there are actual concerns. If there are none, return an empty warnings list.
"""
