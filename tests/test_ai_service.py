"""Tests for the remote structured extraction."""

import base64
import json
from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from app.dualparse.models import ElementType, PdfParseResult
from app.dualparse.services.ai import (
    AIService,
    AIServiceError,
    parse_response_text,
    usage_from_response,
)
from app.dualparse.services.ai.extraction import build_messages, extract_structured
from app.dualparse.services.ai.prompts import (
    EXTRACTION_PROMPT,
    PDF_PARSE_RESPONSE_SCHEMA,
    RESPONSE_FORMAT,
)


def _assert_strict(schema: dict) -> None:
    """Every object must list all properties as required and forbid extras."""
    if schema.get("type") == "object":
        assert schema["additionalProperties"] is False
        assert set(schema["required"]) == set(schema["properties"])
        for child in schema["properties"].values():
            _assert_strict(child)
    elif schema.get("type") == "array":
        _assert_strict(schema["items"])


class TestPrompts:
    """Tests for the instruction prompt and output schema."""

    def test_prompt_states_sign_convention(self):
        assert "Positive for debits/purchases" in EXTRACTION_PROMPT
        assert "Negative for credits/payments/refunds" in EXTRACTION_PROMPT

    def test_prompt_excludes_totals(self):
        assert "Exclude subtotals" in EXTRACTION_PROMPT

    def test_schema_top_level_keys(self):
        assert set(PDF_PARSE_RESPONSE_SCHEMA["properties"]) == {
            "metadata",
            "transactions",
            "pages",
        }

    def test_schema_is_strict(self):
        _assert_strict(PDF_PARSE_RESPONSE_SCHEMA)
        assert RESPONSE_FORMAT["json_schema"]["strict"] is True

    def test_element_type_enum(self):
        element = PDF_PARSE_RESPONSE_SCHEMA["properties"]["pages"]["items"]["properties"][
            "structuredElements"
        ]["items"]
        assert element["properties"]["type"]["enum"] == [t.value for t in ElementType]


class TestBuildMessages:
    def test_pdf_sent_inline_as_base64(self, sample_pdf_bytes: bytes):
        """Test that the PDF is re-encoded as a base64 data URL file part."""
        messages = build_messages(sample_pdf_bytes, "statement.pdf")
        file_part, text_part = messages[0]["content"]

        assert file_part["type"] == "file"
        assert file_part["file"]["filename"] == "statement.pdf"
        prefix = "data:application/pdf;base64,"
        assert file_part["file"]["file_data"].startswith(prefix)
        encoded = file_part["file"]["file_data"][len(prefix):]
        assert base64.b64decode(encoded) == sample_pdf_bytes
        assert text_part == {"type": "text", "text": EXTRACTION_PROMPT}


class TestUsageFromResponse:
    def test_reads_counters(self):
        response = SimpleNamespace(
            usage=SimpleNamespace(prompt_tokens=10, completion_tokens=5, total_tokens=15)
        )
        usage = usage_from_response(response)
        assert (usage.prompt_tokens, usage.response_tokens, usage.total_tokens) == (10, 5, 15)

    def test_missing_usage_defaults_to_zero(self):
        """Test that absent usage metadata yields all-zero counters."""
        usage = usage_from_response(SimpleNamespace(usage=None))
        assert (usage.prompt_tokens, usage.response_tokens, usage.total_tokens) == (0, 0, 0)

    def test_missing_counter_defaults_to_zero(self):
        response = SimpleNamespace(usage=SimpleNamespace(prompt_tokens=7, completion_tokens=None))
        usage = usage_from_response(response)
        assert usage.prompt_tokens == 7
        assert usage.response_tokens == 0
        assert usage.total_tokens == 0


class TestParseResponseText:
    def test_valid_payload(self, sample_ai_payload):
        result = parse_response_text(json.dumps(sample_ai_payload))
        assert result.metadata.title == "Credit Card Statement"
        assert len(result.transactions) == 2
        assert result.pages[0].structured_elements[0].type == ElementType.HEADING

    def test_empty_payload_raises(self):
        with pytest.raises(AIServiceError) as exc_info:
            parse_response_text("")
        assert "No response text" in str(exc_info.value)

    def test_invalid_json_message_verbatim(self):
        """Test that the decoder message is passed through unchanged."""
        with pytest.raises(AIServiceError) as exc_info:
            parse_response_text("{not json")
        with pytest.raises(json.JSONDecodeError) as decode_info:
            json.loads("{not json")
        assert str(exc_info.value) == str(decode_info.value)

    def test_non_object_raises(self):
        with pytest.raises(AIServiceError):
            parse_response_text("[1, 2, 3]")

    def test_off_schema_message_verbatim(self):
        payload = {"pages": [{"pageNumber": 0}]}
        with pytest.raises(AIServiceError) as exc_info:
            parse_response_text(json.dumps(payload))
        with pytest.raises(ValidationError) as validation_info:
            PdfParseResult.model_validate(payload)
        assert str(exc_info.value) == str(validation_info.value)

    def test_normalize_applies_to_transactions(self, sample_ai_payload):
        sample_ai_payload["transactions"][0]["post_date"] = "Jan 2, 2026"
        sample_ai_payload["transactions"][0]["amount"] = "LKR 1,500.00"
        result = parse_response_text(json.dumps(sample_ai_payload), normalize=True)
        assert result.transactions[0].post_date == "2026-01-02"
        assert result.transactions[0].amount == 1500.0

    def test_without_normalize_fields_unchanged(self, sample_ai_payload):
        sample_ai_payload["transactions"][0]["post_date"] = "Jan 2, 2026"
        result = parse_response_text(json.dumps(sample_ai_payload))
        assert result.transactions[0].post_date == "Jan 2, 2026"


class TestExtractStructured:
    """Tests for the remote extraction call."""

    @pytest.mark.asyncio
    async def test_success_attaches_usage(
        self, sample_pdf_bytes, sample_ai_payload, make_completion, make_openai_client
    ):
        usage = SimpleNamespace(prompt_tokens=1000, completion_tokens=250, total_tokens=1250)
        client = make_openai_client(make_completion(json.dumps(sample_ai_payload), usage))

        result = await extract_structured(sample_pdf_bytes, "statement.pdf", client=client)

        assert isinstance(result, PdfParseResult)
        assert result.token_usage.total_tokens == 1250
        assert result.standard_raw_text is None

        kwargs = client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "gpt-4.1"
        assert kwargs["response_format"] == RESPONSE_FORMAT

    @pytest.mark.asyncio
    async def test_usage_absent(
        self, sample_pdf_bytes, sample_ai_payload, make_completion, make_openai_client
    ):
        client = make_openai_client(make_completion(json.dumps(sample_ai_payload)))
        result = await extract_structured(sample_pdf_bytes, "statement.pdf", client=client)
        assert result.token_usage.model_dump() == {
            "prompt_tokens": 0,
            "response_tokens": 0,
            "total_tokens": 0,
        }

    @pytest.mark.asyncio
    async def test_empty_response_raises(self, sample_pdf_bytes, make_completion, make_openai_client):
        client = make_openai_client(make_completion(None))
        with pytest.raises(AIServiceError):
            await extract_structured(sample_pdf_bytes, "statement.pdf", client=client)

    @pytest.mark.asyncio
    async def test_refusal_raises(self, sample_pdf_bytes, make_completion, make_openai_client):
        client = make_openai_client(make_completion(None, refusal="I can't help with that."))
        with pytest.raises(AIServiceError) as exc_info:
            await extract_structured(sample_pdf_bytes, "statement.pdf", client=client)
        assert str(exc_info.value) == "I can't help with that."

    @pytest.mark.asyncio
    async def test_sdk_error_message_kept_verbatim(self, sample_pdf_bytes, make_openai_client):
        """Test that service failures surface their message unchanged."""
        client = make_openai_client(error=RuntimeError("429 quota exceeded"))
        with pytest.raises(AIServiceError) as exc_info:
            await extract_structured(sample_pdf_bytes, "statement.pdf", client=client)
        assert str(exc_info.value) == "429 quota exceeded"
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestAIService:
    """Tests for the AIService facade."""

    def test_missing_key_raises_on_use(self):
        service = AIService(api_key="")
        with pytest.raises(AIServiceError) as exc_info:
            service.client
        assert "OPENAI_API_KEY" in str(exc_info.value)

    def test_explicit_configuration(self):
        service = AIService(api_key="sk-test", model="gpt-4o", normalize=True)
        assert service.model == "gpt-4o"
        assert service.normalize is True

    @pytest.mark.asyncio
    async def test_missing_key_fails_extraction(self, sample_pdf_bytes):
        service = AIService(api_key="")
        with pytest.raises(AIServiceError):
            await service.extract_structured(sample_pdf_bytes, "statement.pdf")

    @pytest.mark.asyncio
    async def test_delegates_to_client(
        self, sample_pdf_bytes, sample_ai_payload, make_completion, make_openai_client
    ):
        client = make_openai_client(make_completion(json.dumps(sample_ai_payload)))
        service = AIService(api_key="sk-test", model="gpt-4o", client=client)

        result = await service.extract_structured(sample_pdf_bytes, "statement.pdf")

        assert len(result.transactions) == 2
        assert client.chat.completions.create.await_args.kwargs["model"] == "gpt-4o"
