"""
Dual-Parse PDF Extraction Backend.

A FastAPI service that extracts structured data (metadata, pages and
financial transactions) from PDF documents using AI (OpenAI), and compares
it side by side with plain text extracted locally by pdfplumber.
"""

__version__ = "1.0.0"
