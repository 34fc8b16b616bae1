"""Dependency injection for FastAPI endpoints"""

from fastapi import Request
from statement_analyzer.domain.analyzer import StatementAnalyzer
from statement_analyzer.infrastructure.clients.claude import ClaudeClient
from statement_analyzer.infrastructure.storage.uploads import UploadStore


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_analyzer() -> StatementAnalyzer:
    """
    Provide a statement analyzer backed by the Claude API.

    Raises:
        ConfigurationError: If the Claude API key is not configured
    """
    return StatementAnalyzer.from_client(ClaudeClient())


def get_upload_store() -> UploadStore:
    """Provide temporary upload storage"""
    return UploadStore()
