"""
Shared exceptions for AI service modules.
"""


class AIServiceError(Exception):
    """Raised when the remote structured extraction fails."""

    pass
