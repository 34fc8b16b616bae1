"""Unit tests for transaction extraction"""

import json
import pytest
from decimal import Decimal
from unittest.mock import AsyncMock
from statement_analyzer.domain.extractor import TransactionExtractor
from statement_analyzer.domain.models import AccountTypeVerdict, Document, TransactionKind
from statement_analyzer.domain.prompts import build_extraction_prompt
from statement_analyzer.domain.exceptions import MalformedResponseError, UpstreamError


@pytest.mark.parametrize("verdict_fixture", ["credit_verdict", "debit_verdict"])
async def test_template_follows_detected_category(
    request: pytest.FixtureRequest,
    verdict_fixture: str,
    fake_claude: AsyncMock,
    document: Document,
    oxxo_payload: dict,
):
    verdict: AccountTypeVerdict = request.getfixturevalue(verdict_fixture)
    fake_claude.complete.return_value = json.dumps(oxxo_payload)

    await TransactionExtractor(fake_claude, max_tokens=4000).extract(document, verdict)

    fake_claude.complete.assert_awaited_once_with(
        document,
        build_extraction_prompt(verdict.account_category, verdict.institution_name),
        4000,
        stage="extraction",
    )


async def test_extract_parses_fenced_answer(
    fake_claude: AsyncMock, document: Document, debit_verdict: AccountTypeVerdict, oxxo_payload: dict
):
    fake_claude.complete.return_value = "Aquí está:\n```json\n" + json.dumps(oxxo_payload) + "\n```"

    result = await TransactionExtractor(fake_claude).extract(document, debit_verdict)

    assert result.confidence == 88
    assert result.transactions[0].description == "OXXO CENTRO"
    assert result.transactions[0].amount == Decimal("-150.50")
    assert result.transactions[0].kind == TransactionKind.EXPENSE
    assert result.summary.net_balance == Decimal("-150.50")


async def test_extract_returns_incomplete_result_for_caller_to_reject(
    fake_claude: AsyncMock, document: Document, debit_verdict: AccountTypeVerdict
):
    fake_claude.complete.return_value = '{"confidence": 20, "transactions": []}'

    result = await TransactionExtractor(fake_claude).extract(document, debit_verdict)

    assert result.transactions == []
    assert result.summary is None


@pytest.mark.parametrize("answer", ["[1, 2, 3]", "Lo siento, el PDF está protegido.", '{"transactions": "ninguna"}'])
async def test_extract_rejects_malformed_answers(
    fake_claude: AsyncMock, document: Document, debit_verdict: AccountTypeVerdict, answer: str
):
    fake_claude.complete.return_value = answer

    with pytest.raises(MalformedResponseError):
        await TransactionExtractor(fake_claude).extract(document, debit_verdict)


async def test_extract_propagates_upstream_errors(
    fake_claude: AsyncMock, document: Document, credit_verdict: AccountTypeVerdict
):
    fake_claude.complete.side_effect = UpstreamError("Claude API timeout after 60.0s")

    with pytest.raises(UpstreamError):
        await TransactionExtractor(fake_claude).extract(document, credit_verdict)
