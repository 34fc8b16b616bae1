"""Statement analysis orchestration - detection, extraction, validation"""

import logging

from statement_analyzer.domain.detector import AccountTypeDetector
from statement_analyzer.domain.exceptions import IncompleteResultError
from statement_analyzer.domain.extractor import TransactionExtractor
from statement_analyzer.domain.models import AnalysisResult, Document
from statement_analyzer.domain.prompts import LOW_CONFIDENCE_THRESHOLD

logger = logging.getLogger(__name__)


class StatementAnalyzer:
    """Runs the two-stage Claude protocol for one statement at a time"""

    def __init__(self, detector: AccountTypeDetector, extractor: TransactionExtractor):
        self.detector = detector
        self.extractor = extractor

    @classmethod
    def from_client(cls, client) -> "StatementAnalyzer":
        return cls(AccountTypeDetector(client), TransactionExtractor(client))

    async def analyze(self, document: Document) -> AnalysisResult:
        """
        Analyze a statement end to end.

        Flow:
        1. Detect account category and institution
        2. Extract with the template for that category
        3. Stamp the detected category and institution onto the result
        4. Reject results without transactions or summary

        Raises:
            UpstreamError: If either Claude call fails
            MalformedResponseError: If either answer cannot be parsed
            IncompleteResultError: If transactions or summary are missing
        """
        verdict = await self.detector.detect(document)
        result = await self.extractor.extract(document, verdict)

        # Detection ran without category-specific framing, so it wins
        result.account_category = verdict.account_category
        result.institution_name = verdict.institution_name

        missing = [name for name in ("transactions", "summary") if getattr(result, name) is None]
        if missing:
            raise IncompleteResultError(f"Incomplete result, missing: {', '.join(missing)}")

        if result.confidence is not None and result.confidence < LOW_CONFIDENCE_THRESHOLD:
            logger.warning(
                "Low confidence extraction",
                extra={"confidence": result.confidence, "institution_name": result.institution_name},
            )

        if not result.summary.is_balanced:
            logger.warning(
                "Summary net balance does not match income plus expenses",
                extra={
                    "total_income": str(result.summary.total_income),
                    "total_expenses": str(result.summary.total_expenses),
                    "net_balance": str(result.summary.net_balance),
                },
            )

        return result
