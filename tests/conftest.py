"""Pytest configuration and fixtures."""

from types import SimpleNamespace
from typing import Any, Generator
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from app.dualparse.main import app
from app.dualparse.models import PdfParseResult
from app.dualparse.services.session import ParseSession, get_parse_session

SAMPLE_RAW_TEXT = "--- PAGE 1 ---\n\nACME BANK Statement 2026-01-02 GROCERY MART 1,500.00\n\n"


class FakeAIService:
    """Stands in for AIService: returns a fixed result or raises a fixed error."""

    def __init__(self, result: PdfParseResult | None = None, error: Exception | None = None):
        self.result = result
        self.error = error
        self.calls: list[tuple[bytes, str, str]] = []

    async def extract_structured(
        self, pdf_bytes: bytes, filename: str, mime_type: str = "application/pdf"
    ) -> PdfParseResult:
        self.calls.append((pdf_bytes, filename, mime_type))
        if self.error is not None:
            raise self.error
        return self.result


class FakePDFService:
    """Stands in for PDFService: returns fixed raw text."""

    def __init__(self, raw_text: str = SAMPLE_RAW_TEXT):
        self.raw_text = raw_text
        self.calls: list[bytes] = []

    async def extract_raw_text_async(self, pdf_bytes: bytes) -> str:
        self.calls.append(pdf_bytes)
        return self.raw_text


class FakePage:
    """Minimal pdfplumber page exposing extract_words."""

    def __init__(self, words: list[str]):
        self.words = words

    def extract_words(self, keep_blank_chars: bool = False) -> list[dict[str, Any]]:
        return [{"text": w} for w in self.words]


class FakePDF:
    """Minimal pdfplumber document usable as a context manager."""

    def __init__(self, pages: list[FakePage]):
        self.pages = pages

    def __enter__(self) -> "FakePDF":
        return self

    def __exit__(self, *exc) -> None:
        return None


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """
    Create a minimal valid PDF for testing.

    This is a minimal PDF structure that should be recognized as a valid PDF.
    """
    return b"""%PDF-1.4
1 0 obj
<< /Type /Catalog /Pages 2 0 R >>
endobj
2 0 obj
<< /Type /Pages /Kids [3 0 R] /Count 1 >>
endobj
3 0 obj
<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R >>
endobj
4 0 obj
<< /Length 44 >>
stream
BT
/F1 12 Tf
100 700 Td
(Test) Tj
ET
endstream
endobj
trailer
<< /Size 5 /Root 1 0 R >>
%%EOF"""


@pytest.fixture
def invalid_file_bytes() -> bytes:
    """Create invalid (non-PDF) file bytes for testing."""
    return b"This is not a PDF file"


@pytest.fixture
def sample_ai_payload() -> dict[str, Any]:
    """JSON document as returned by the model for a one-page statement."""
    return {
        "metadata": {
            "title": "Credit Card Statement",
            "author": "ACME Bank",
            "summary": "Monthly statement for January 2026",
            "language": "English",
            "topic": "Finance",
        },
        "transactions": [
            {
                "post_date": "2026-01-02",
                "trans_date": "2026-01-01",
                "description": 'GROCERY MART "DOWNTOWN"',
                "amount": 1500.00,
                "currency": "LKR",
            },
            {
                "post_date": "2026-01-05",
                "trans_date": "2026-01-05",
                "description": "PAYMENT RECEIVED - THANK YOU",
                "amount": -200.00,
                "currency": "LKR",
            },
        ],
        "pages": [
            {
                "pageNumber": 1,
                "rawText": "ACME BANK Statement",
                "structuredElements": [
                    {"type": "heading", "content": "ACME BANK"},
                    {"type": "table", "content": "Date | Description | Amount"},
                ],
            }
        ],
    }


@pytest.fixture
def sample_result(sample_ai_payload: dict[str, Any]) -> PdfParseResult:
    """Structured result as produced by the remote branch."""
    return PdfParseResult.model_validate(
        {
            **sample_ai_payload,
            "tokenUsage": {"promptTokens": 1000, "responseTokens": 250, "totalTokens": 1250},
        }
    )


@pytest.fixture
def make_completion():
    """Factory for fake chat completion responses."""

    def _make(content: str | None, usage: Any = None, refusal: str | None = None):
        message = SimpleNamespace(content=content, refusal=refusal)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)], usage=usage)

    return _make


@pytest.fixture
def make_openai_client():
    """Factory for fake AsyncOpenAI clients returning (or raising) a fixed value."""

    def _make(response: Any = None, error: Exception | None = None) -> MagicMock:
        client = MagicMock()
        if error is not None:
            client.chat.completions.create = AsyncMock(side_effect=error)
        else:
            client.chat.completions.create = AsyncMock(return_value=response)
        return client

    return _make


@pytest.fixture
def parse_session(sample_result: PdfParseResult) -> ParseSession:
    """Session wired to fake parsers that succeed."""
    return ParseSession(
        ai_service=FakeAIService(result=sample_result),
        pdf_service=FakePDFService(),
    )


@pytest.fixture
def client(parse_session: ParseSession) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    app.dependency_overrides[get_parse_session] = lambda: parse_session
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
