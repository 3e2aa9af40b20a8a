"""Structured listing classification via the OpenAI Chat Completions API."""

import asyncio
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import httpx

from models.constants import DAMAGE_CANON, SALE_CANON

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "Tag real-estate descriptions with exact allowed lowercase keywords only. "
    "Prefer high precision."
)

RETRYABLE_STATUS_CODES = {408, 409, 429, 500, 502, 503, 504}


class ClassifierError(Exception):
    """Classification could not produce a usable result."""


class ClassifierSchemaError(ClassifierError):
    """Response was malformed or used values outside the allowed lists."""


class ClassifierUnavailableError(ClassifierError):
    """Provider could not be reached after all retries."""


@dataclass
class ClassificationResult:
    """Validated classifier output."""

    damage: List[str] = field(default_factory=list)
    sale_types: List[str] = field(default_factory=list)
    rationale: str = ""


def build_response_schema(
    allowed_damage: Sequence[str], allowed_sale: Sequence[str]
) -> Dict[str, Any]:
    """JSON schema whose enums are exactly the allowed vocabularies."""
    return {
        "type": "object",
        "properties": {
            "damage": {
                "type": "array",
                "items": {"type": "string", "enum": list(allowed_damage)},
            },
            "sale_types": {
                "type": "array",
                "items": {"type": "string", "enum": list(allowed_sale)},
            },
            "rationale": {"type": "string"},
        },
        "required": ["damage", "sale_types", "rationale"],
        "additionalProperties": False,
    }


def build_user_prompt(
    description: str, allowed_damage: Sequence[str], allowed_sale: Sequence[str]
) -> str:
    lines = ["ALLOWED DAMAGE:"]
    lines.extend(f"- {keyword}" for keyword in allowed_damage)
    lines.append("")
    lines.append("ALLOWED SALE TYPES:")
    lines.extend(f"- {keyword}" for keyword in allowed_sale)
    lines.append("")
    lines.append("OUTPUT JSON with fields: damage[], sale_types[], rationale")
    lines.append("")
    lines.append("DESCRIPTION:")
    lines.append(description)
    return "\n".join(lines)


class OpenAIClassifier:
    """Classifier provider backed by an OpenAI-compatible chat endpoint."""

    DEFAULT_MODEL = "gpt-4o-mini"
    DEFAULT_BASE_URL = "https://api.openai.com/v1"
    DEFAULT_TIMEOUT = 30.0
    MAX_RETRIES = 2

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = MAX_RETRIES,
        retry_delay: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the OpenAI classifier.

        Args:
            api_key: API credential (required)
            model: Chat model name
            base_url: API base URL
            timeout: Per-request timeout in seconds
            max_retries: Extra attempts after a transient failure
            retry_delay: Base delay between attempts, multiplied by attempt number
            transport: Optional httpx transport (used to mock the API)
        """
        if not api_key:
            raise ValueError("OpenAIClassifier requires an API key")
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max(0, int(max_retries))
        self.retry_delay = retry_delay
        self.transport = transport

    async def classify(
        self,
        description: str,
        allowed_damage: Sequence[str] = DAMAGE_CANON,
        allowed_sale: Sequence[str] = SALE_CANON,
    ) -> ClassificationResult:
        """
        Classify a listing description against the allowed vocabularies.

        Args:
            description: Listing description text
            allowed_damage: Allowed damage keywords (lower-case)
            allowed_sale: Allowed sale-type keywords (lower-case)

        Returns:
            ClassificationResult with values drawn from the allowed lists

        Raises:
            ClassifierSchemaError: Response is malformed or out of vocabulary
            ClassifierUnavailableError: Transient failures exhausted the retries
            ClassifierError: Any other non-retryable HTTP failure
        """
        payload = {
            "model": self.model,
            "temperature": 0,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": build_user_prompt(description, allowed_damage, allowed_sale),
                },
            ],
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "name": "listing_tags",
                    "strict": True,
                    "schema": build_response_schema(allowed_damage, allowed_sale),
                },
            },
        }

        data = await self._post_with_retries(payload)
        content = self._extract_content(data)
        parsed = self._parse_json_response(content)
        return self._validate(parsed, allowed_damage, allowed_sale)

    async def _post_with_retries(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        attempts = self.max_retries + 1
        last_error: Optional[Exception] = None

        for attempt in range(attempts):
            try:
                async with httpx.AsyncClient(
                    timeout=httpx.Timeout(self.timeout, connect=10.0, pool=5.0),
                    transport=self.transport,
                ) as client:
                    response = await client.post(
                        f"{self.base_url}/chat/completions",
                        headers={"Authorization": f"Bearer {self.api_key}"},
                        json=payload,
                    )

                if response.status_code == 200:
                    return response.json()

                if response.status_code not in RETRYABLE_STATUS_CODES:
                    raise ClassifierError(
                        f"OpenAI request rejected: status={response.status_code} "
                        f"body={response.text[:200]}"
                    )

                last_error = ClassifierError(f"status={response.status_code}")
                logger.warning(
                    f"OpenAI request failed (attempt {attempt + 1}/{attempts}): "
                    f"status={response.status_code}"
                )

            except httpx.TimeoutException as e:
                last_error = e
                logger.warning(
                    f"OpenAI timeout on attempt {attempt + 1}/{attempts} "
                    f"(timeout: {self.timeout}s): {e}"
                )
            except httpx.TransportError as e:
                last_error = e
                logger.warning(
                    f"Cannot reach OpenAI on attempt {attempt + 1}/{attempts}: {e}"
                )
            except ValueError as e:
                raise ClassifierSchemaError(f"Response body is not JSON: {e}") from e

            if attempt + 1 < attempts:
                await asyncio.sleep(self.retry_delay * (attempt + 1))

        raise ClassifierUnavailableError(
            f"OpenAI classification failed after {attempts} attempts: {last_error}"
        )

    def _extract_content(self, data: Dict[str, Any]) -> str:
        try:
            message = data["choices"][0]["message"]
        except (KeyError, IndexError, TypeError) as e:
            raise ClassifierSchemaError(f"Unexpected response shape: {e}") from e

        if message.get("refusal"):
            raise ClassifierSchemaError(f"Model refused: {message['refusal']}")

        content = message.get("content")
        if not content:
            raise ClassifierSchemaError("Empty response content")
        return content

    def _parse_json_response(self, text: str) -> Dict[str, Any]:
        """
        Parse the JSON object from the response text.

        Strategies (in order):
        1. Direct JSON parse
        2. Extract from markdown code block
        """
        try:
            result = json.loads(text)
        except json.JSONDecodeError:
            json_match = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", text)
            if not json_match:
                raise ClassifierSchemaError(f"Response is not JSON: {text[:200]}")
            try:
                result = json.loads(json_match.group(1))
            except json.JSONDecodeError as e:
                raise ClassifierSchemaError(f"Malformed JSON in code block: {e}") from e

        if not isinstance(result, dict):
            raise ClassifierSchemaError(f"Expected a JSON object, got {type(result).__name__}")
        return result

    def _validate(
        self,
        data: Dict[str, Any],
        allowed_damage: Sequence[str],
        allowed_sale: Sequence[str],
    ) -> ClassificationResult:
        """Normalize values and reject anything outside the allowed lists."""
        damage = self._validate_values(data.get("damage"), allowed_damage, "damage")
        sale_types = self._validate_values(data.get("sale_types"), allowed_sale, "sale_types")

        rationale = data.get("rationale") or ""
        if not isinstance(rationale, str):
            raise ClassifierSchemaError("rationale must be a string")

        logger.debug(
            f"Classifier returned {len(damage)} damage and {len(sale_types)} sale tags"
        )
        return ClassificationResult(
            damage=damage, sale_types=sale_types, rationale=rationale.strip()
        )

    @staticmethod
    def _validate_values(
        values: Any, allowed: Sequence[str], field_name: str
    ) -> List[str]:
        if values is None:
            return []
        if not isinstance(values, list):
            raise ClassifierSchemaError(f"{field_name} must be a list")

        cleaned: List[str] = []
        for value in values:
            if not isinstance(value, str):
                raise ClassifierSchemaError(f"{field_name} contains non-string {value!r}")
            normalized = value.strip().lower()
            if normalized not in allowed:
                raise ClassifierSchemaError(
                    f"{field_name} value {value!r} is not an allowed keyword"
                )
            if normalized not in cleaned:
                cleaned.append(normalized)
        return cleaned
