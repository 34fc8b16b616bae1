"""Domain-specific exceptions"""

RAW_TEXT_PREVIEW_CHARS = 500


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class AnalysisError(DomainException):
    """Statement analysis failed; never accompanied by a partial result"""

    pass


class ConfigurationError(AnalysisError):
    """Required upstream credential is missing"""

    pass


class UpstreamError(AnalysisError):
    """Claude API call failed, timed out or returned a non-success status"""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class MalformedResponseError(AnalysisError):
    """Claude answered, but the cleaned text does not have the expected shape"""

    def __init__(self, message: str, raw_text: str | None = None):
        if raw_text is not None and len(raw_text) > RAW_TEXT_PREVIEW_CHARS:
            raw_text = raw_text[:RAW_TEXT_PREVIEW_CHARS] + "..."
        super().__init__(message)
        self.raw_text = raw_text


class IncompleteResultError(AnalysisError):
    """Parsed result is missing transactions or summary"""

    pass
