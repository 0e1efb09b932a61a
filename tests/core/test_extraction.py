"""Tests for InvoiceExtractor."""

import pytest
from unittest.mock import Mock

from clients.llm_client import LLMClient, LLMError, LLMResponse
from core.config import InvoiceConfig
from core.extraction import InvoiceExtractor
from core.models import InvoiceStatus, LineItem


@pytest.fixture
def mock_llm():
    return Mock(spec=LLMClient)


@pytest.fixture
def extractor(mock_llm):
    return InvoiceExtractor(mock_llm, InvoiceConfig(ai_models=["model-a", "model-b"]))


class TestExtractInvoice:
    """Tests for InvoiceExtractor.extract_invoice."""

    def test_extracts_invoice_from_text(self, extractor, mock_llm):
        """Clean JSON reply is normalized into a draft."""
        mock_llm.generate.return_value = LLMResponse(
            content='{"client": {"name": "Acme"}, "tax_rate": 18, "payment_status": "Unpaid",'
                    ' "items": [{"description": "Logo design", "quantity": 2, "unit_price": 500}]}',
            model="model-a",
        )

        result = extractor.extract_invoice("2 logo designs at 500 each for Acme, 18% GST")

        assert result.draft.client.name == "Acme"
        assert result.draft.tax_percent == 18
        assert result.draft.status == InvoiceStatus.UNPAID
        assert result.draft.items == [LineItem(description="Logo design", quantity=2, unit_price=500)]
        assert result.model == "model-a"

    def test_sends_system_prompt_and_input(self, extractor, mock_llm):
        mock_llm.generate.return_value = LLMResponse(content="{}", model="model-a")

        extractor.extract_invoice("  invoice Acme  ")

        messages = mock_llm.generate.call_args.kwargs["messages"]
        assert messages[0]["role"] == "system"
        assert messages[0]["content"] == InvoiceExtractor.SYSTEM_PROMPT
        assert messages[1] == {"role": "user", "content": "User input:\n\ninvoice Acme"}
        assert mock_llm.generate.call_args.kwargs["max_tokens"] == 2048

    def test_repairs_malformed_json(self, extractor, mock_llm):
        """Uses json_repair to fix common LLM JSON errors."""
        mock_llm.generate.return_value = LLMResponse(
            content='{"currency": "usd", "items": [],}',  # Invalid trailing comma
            model="model-a",
        )

        result = extractor.extract_invoice("usd invoice")

        assert result.draft.currency == "USD"

    def test_strips_code_fences_and_prose(self, extractor, mock_llm):
        mock_llm.generate.return_value = LLMResponse(
            content='Here you go:\n```json\n{"tax_rate": 5}\n```',
            model="model-a",
        )

        result = extractor.extract_invoice("5% tax")

        assert result.draft.tax_percent == 5

    def test_no_json_raises_llm_error(self, extractor, mock_llm):
        mock_llm.generate.return_value = LLMResponse(content="Sorry, I can't help.", model="model-a")

        with pytest.raises(LLMError, match="No JSON"):
            extractor.extract_invoice("anything")

    def test_raw_response_preserved(self, extractor, mock_llm):
        mock_llm.generate.return_value = LLMResponse(content='{"notes": "Thanks"}', model="model-a")

        result = extractor.extract_invoice("note thanks")

        assert result.raw_response == '{"notes": "Thanks"}'
        assert result.draft.notes == "Thanks"

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_prompt_rejected(self, extractor, mock_llm, text):
        with pytest.raises(ValueError, match="Prompt is required"):
            extractor.extract_invoice(text)

        mock_llm.generate.assert_not_called()


class TestModelFallback:
    """Models are tried in configured order."""

    def test_falls_back_on_error(self, extractor, mock_llm):
        mock_llm.generate.side_effect = [
            LLMError("overloaded"),
            LLMResponse(content='{"currency": "EUR"}', model="model-b"),
        ]

        result = extractor.extract_invoice("eur invoice")

        assert result.draft.currency == "EUR"
        assert result.model == "model-b"
        models = [c.kwargs["model"] for c in mock_llm.generate.call_args_list]
        assert models == ["model-a", "model-b"]

    def test_falls_back_on_empty_reply(self, extractor, mock_llm):
        mock_llm.generate.side_effect = [
            LLMResponse(content="   ", model="model-a"),
            LLMResponse(content="{}", model="model-b"),
        ]

        assert extractor.extract_invoice("x").model == "model-b"

    def test_all_models_fail(self, extractor, mock_llm):
        mock_llm.generate.side_effect = LLMError("down")

        with pytest.raises(LLMError, match="down"):
            extractor.extract_invoice("x")

        assert mock_llm.generate.call_count == 2

    def test_fills_missing_model_name(self, extractor, mock_llm):
        mock_llm.generate.return_value = LLMResponse(content="{}")

        assert extractor.extract_invoice("x").model == "model-a"
