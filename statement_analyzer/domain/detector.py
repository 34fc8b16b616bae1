"""Account type detection - first Claude call of an analysis"""

import json
import logging
from decimal import Decimal

from statement_analyzer.config import settings
from statement_analyzer.domain.exceptions import MalformedResponseError
from statement_analyzer.domain.models import AccountTypeVerdict, Document
from statement_analyzer.domain.prompts import DETECTION_PROMPT
from statement_analyzer.domain.sanitizer import sanitize

logger = logging.getLogger(__name__)


def _reject_constant(name: str) -> None:
    raise ValueError(f"Non-finite number {name}")


def decode_answer(raw_text: str) -> object:
    """
    Sanitize a model answer and decode it as JSON.

    Floats are decoded as Decimal so amounts keep their exact cents.
    NaN and Infinity literals are rejected.

    Raises:
        MalformedResponseError: If the cleaned text is not valid JSON
    """
    cleaned = sanitize(raw_text)
    try:
        return json.loads(cleaned, parse_float=Decimal, parse_constant=_reject_constant)
    except ValueError as e:
        raise MalformedResponseError(f"Claude answer is not valid JSON: {e}", raw_text) from e


class AccountTypeDetector:
    """Classifies a statement as credit card or debit account"""

    def __init__(self, client, max_tokens: int | None = None):
        self.client = client
        self.max_tokens = max_tokens or settings.detection_max_tokens

    async def detect(self, document: Document) -> AccountTypeVerdict:
        """
        Ask Claude for the account category and issuing institution.

        Raises:
            UpstreamError: If the Claude call fails
            MalformedResponseError: If the answer does not parse as a verdict
        """
        raw_text = await self.client.complete(document, DETECTION_PROMPT, self.max_tokens, stage="detection")
        verdict = AccountTypeVerdict.from_payload(decode_answer(raw_text), raw_text)

        logger.info(
            "Account type detected",
            extra={
                "step": "detection",
                "account_category": verdict.account_category.value,
                "institution_name": verdict.institution_name,
                "confidence": verdict.confidence,
            },
        )
        return verdict
