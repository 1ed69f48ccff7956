"""
Pydantic models for the dual-parse pipeline.

Defines strict, immutable types for the structured extraction result
(metadata, pages, transactions, token usage) and the API envelopes.
Wire names follow the camelCase JSON the frontend consumes; Python
attributes stay snake_case.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ElementType(str, Enum):
    """Structural element classes a page can be split into."""

    HEADING = "heading"
    PARAGRAPH = "paragraph"
    LIST = "list"
    TABLE = "table"
    IMAGE_DESCRIPTION = "image_description"
    OTHER = "other"  # Catch-all for anything the model cannot classify


class ParseStatus(str, Enum):
    """Status of the current upload."""

    IDLE = "IDLE"
    PROCESSING = "PROCESSING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


class ParsedMetadata(BaseModel):
    """
    Document-level metadata produced once per document.

    All fields are best-effort free text; missing values are empty strings.
    """

    model_config = ConfigDict(frozen=True)

    title: str = Field(default="", description="Document title")
    author: str = Field(default="", description="Author or issuing organization")
    summary: str = Field(default="", description="Brief summary of the content")
    language: str = Field(default="", description="Detected language")
    topic: str = Field(default="", description="Main topic")


class ParsedElement(BaseModel):
    """A single structural element on a page."""

    model_config = ConfigDict(frozen=True)

    type: ElementType = Field(
        default=ElementType.OTHER,
        description="Structural class of the element",
    )
    content: str = Field(default="", description="Text content of the element")

    @field_validator("type", mode="before")
    @classmethod
    def coerce_unknown_type(cls, v):
        """Map unknown element classes to 'other'."""
        if isinstance(v, ElementType):
            return v
        value = str(v or "").strip().lower()
        if value in {t.value for t in ElementType}:
            return value
        return ElementType.OTHER


class ParsedPage(BaseModel):
    """
    One physical page of the document.

    Attributes:
        page_number: 1-indexed page number.
        raw_text: Text of the page as read by the model.
        structured_elements: Elements in extraction order.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    page_number: int = Field(..., ge=1, alias="pageNumber")
    raw_text: str = Field(default="", alias="rawText")
    structured_elements: list[ParsedElement] = Field(
        default_factory=list,
        alias="structuredElements",
    )


class Transaction(BaseModel):
    """
    A normalized financial line item.

    Sign convention: positive amounts are debits/purchases, negative
    amounts are credits/payments/refunds.
    """

    model_config = ConfigDict(frozen=True)

    post_date: str = Field(default="", description="Posting date (YYYY-MM-DD)")
    trans_date: str = Field(default="", description="Transaction date (YYYY-MM-DD)")
    description: str = Field(default="", description="Cleaned description")
    amount: float = Field(..., description="Signed amount")
    currency: str = Field(default="", description="Currency code, e.g. LKR or USD")

    @property
    def is_credit(self) -> bool:
        """Whether the line is displayed as a credit (anything not strictly positive)."""
        return not self.amount > 0

    @property
    def magnitude(self) -> float:
        return abs(self.amount)


class TokenUsage(BaseModel):
    """Token accounting reported by the remote model."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    prompt_tokens: int = Field(default=0, ge=0, alias="promptTokens")
    response_tokens: int = Field(default=0, ge=0, alias="responseTokens")
    total_tokens: int = Field(default=0, ge=0, alias="totalTokens")


class PdfParseResult(BaseModel):
    """
    Complete result of parsing one uploaded PDF.

    Combines the structured AI extraction with the locally extracted
    comparison text. Immutable once constructed.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    metadata: ParsedMetadata = Field(default_factory=ParsedMetadata)
    pages: list[ParsedPage] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)
    standard_raw_text: str | None = Field(
        default=None,
        alias="standardRawText",
        description="Plain text extracted locally, for comparison",
    )
    token_usage: TokenUsage | None = Field(default=None, alias="tokenUsage")

    @field_validator("pages")
    @classmethod
    def sort_pages(cls, v: list[ParsedPage]) -> list[ParsedPage]:
        """Keep pages in ascending page order."""
        return sorted(v, key=lambda page: page.page_number)

    @property
    def has_transactions(self) -> bool:
        return bool(self.transactions)


# =============================================================================
# API Envelopes
# =============================================================================


class HealthResponse(BaseModel):
    """Response model for health check endpoints."""

    status: str = Field(..., description="Service status")
    message: str = Field(..., description="Status message")
    version: str = Field(default="1.0.0", description="API version")


class ParseResponse(BaseModel):
    """Response model for the parse endpoint."""

    status: ParseStatus = Field(..., description="Final status of the upload")
    file_name: str = Field(..., description="Uploaded filename")
    result: PdfParseResult = Field(..., description="Merged parse result")
    estimated_cost: str | None = Field(
        default=None,
        description="Estimated USD cost of the remote call",
    )


class SessionResponse(BaseModel):
    """Snapshot of the current parse session."""

    status: ParseStatus = Field(..., description="Current status")
    file_name: str | None = Field(default=None, description="Current file")
    error_message: str | None = Field(default=None, description="Last error")
    result: PdfParseResult | None = Field(default=None, description="Current result")
