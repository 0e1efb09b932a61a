"""
LLM-powered invoice drafting from free-form text.

The model is asked for a fixed JSON structure; whatever comes back is
repaired if needed and normalized into an InvoiceDraft.
"""

import json
import logging
from typing import Any

from json_repair import repair_json
from pydantic import BaseModel

from clients.llm_client import LLMClient, LLMError, LLMResponse
from core.config import InvoiceConfig
from core.models import InvoiceDraft
from core.normalization import normalize_extracted_invoice

logger = logging.getLogger(__name__)


class ExtractedInvoice(BaseModel):
    """Normalized draft plus what the model actually said."""

    draft: InvoiceDraft
    raw_response: str
    model: str | None = None


class InvoiceExtractor:
    """
    Draft invoices from free-form descriptions.

    Tries each configured model in order; the first one that answers
    with any text wins.
    """

    SYSTEM_PROMPT = """You are an invoice data extraction assistant.

Extract invoice details from the user's input and fill this JSON structure:
{
  "invoice_date": "YYYY-MM-DD or null",
  "due_date": "YYYY-MM-DD or null",
  "currency": "USD | INR | EUR | GBP | etc.",
  "tax_rate": 18,
  "payment_status": "Paid | Unpaid | Overdue | Draft",
  "client": {"name": "", "email": "", "phone": "", "address": ""},
  "items": [{"description": "", "quantity": 1, "unit_price": 0}]
}

Rules:
- If a value is not mentioned, use null for strings and dates and 0 for numbers.
- Always return the items array, even if empty [].
- Dates must be in YYYY-MM-DD format.
- Do not include comments or extra fields.

IMPORTANT: Output raw JSON only. Do not wrap in code fences. Do not include any text before or after the JSON.
"""

    def __init__(self, llm: LLMClient, config: InvoiceConfig):
        self.llm = llm
        self.config = config

    def extract_invoice(self, text: str) -> ExtractedInvoice:
        """
        Turn a description into a normalized invoice draft.

        Args:
            text: Free-form description ("2 logo designs at 500 each for Acme, 18% GST")

        Returns:
            ExtractedInvoice with the draft and raw model output

        Raises:
            ValueError: If text is empty
            LLMError: If every model failed or the reply holds no JSON object
        """
        if not text or not text.strip():
            raise ValueError("Prompt is required")

        response = self._generate_with_fallback([
            {"role": "system", "content": self.SYSTEM_PROMPT},
            {"role": "user", "content": f"User input:\n\n{text.strip()}"},
        ])

        data = self._parse_json_with_repair(response.content)
        if data is None:
            raise LLMError("No JSON object found in AI response")

        return ExtractedInvoice(
            draft=normalize_extracted_invoice(data, self.config),
            raw_response=response.content,
            model=response.model,
        )

    def _generate_with_fallback(self, messages: list[dict]) -> LLMResponse:
        """Call each configured model until one returns text."""
        last_error: LLMError | None = None

        for model in self.config.ai_models:
            try:
                response = self.llm.generate(
                    messages=messages,
                    model=model,
                    max_tokens=self.config.ai_max_tokens,
                )
            except LLMError as e:
                logger.warning(f"Model {model} failed: {e}")
                last_error = e
                continue

            if not response.content.strip():
                logger.warning(f"Model {model} returned an empty response")
                last_error = LLMError(f"Empty response from {model}")
                continue

            if response.model is None:
                response = response.model_copy(update={"model": model})
            return response

        raise last_error or LLMError("All models failed")

    def _parse_json_with_repair(self, content: str) -> dict[str, Any] | None:
        """
        Parse JSON with repair fallback for common LLM errors.

        Handles code fences, surrounding prose, trailing commas and
        unquoted keys.

        Returns:
            Parsed dict, or None if no object could be recovered
        """
        text = content.strip()

        try:
            result = json.loads(text)
            if isinstance(result, dict):
                return result
        except json.JSONDecodeError:
            pass

        first = text.find("{")
        last = text.rfind("}")
        if first == -1 or last < first:
            logger.warning("No JSON object found in AI response")
            return None

        try:
            result = json.loads(repair_json(text[first:last + 1]))
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning(f"Could not parse or repair JSON: {e}")
            return None

        if isinstance(result, dict):
            return result

        logger.warning(f"JSON repair returned non-dict: {type(result)}")
        return None
