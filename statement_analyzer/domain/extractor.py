"""Transaction extraction - second Claude call, templated by account category"""

import logging

from statement_analyzer.config import settings
from statement_analyzer.domain.detector import decode_answer
from statement_analyzer.domain.models import AccountTypeVerdict, AnalysisResult, Document
from statement_analyzer.domain.prompts import build_extraction_prompt

logger = logging.getLogger(__name__)


class TransactionExtractor:
    """Extracts transactions, summary and category breakdown from a statement"""

    def __init__(self, client, max_tokens: int | None = None):
        self.client = client
        self.max_tokens = max_tokens or settings.extraction_max_tokens

    async def extract(self, document: Document, verdict: AccountTypeVerdict) -> AnalysisResult:
        """
        Send the statement with the template for the detected account category.

        The returned result may lack transactions or summary; completeness is
        checked by the caller.

        Raises:
            UpstreamError: If the Claude call fails
            MalformedResponseError: If the answer is not a well-formed result object
        """
        prompt = build_extraction_prompt(verdict.account_category, verdict.institution_name)
        raw_text = await self.client.complete(document, prompt, self.max_tokens, stage="extraction")
        result = AnalysisResult.from_payload(decode_answer(raw_text), raw_text)

        logger.info(
            "Transactions extracted",
            extra={
                "step": "extraction",
                "account_category": verdict.account_category.value,
                "transaction_count": len(result.transactions) if result.transactions is not None else None,
                "confidence": result.confidence,
            },
        )
        return result
