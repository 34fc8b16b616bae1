"""Unit tests for statement analysis orchestration"""

import json
import logging
import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock
from statement_analyzer.domain.analyzer import StatementAnalyzer
from statement_analyzer.domain.detector import AccountTypeDetector
from statement_analyzer.domain.extractor import TransactionExtractor
from statement_analyzer.domain.models import (
    AccountCategory,
    AccountTypeVerdict,
    AnalysisResult,
    Document,
    TransactionCategory,
    TransactionKind,
)
from statement_analyzer.domain.exceptions import IncompleteResultError, UpstreamError


def stub_analyzer(verdict=None, result=None, detect_error=None) -> StatementAnalyzer:
    detector = AsyncMock(spec=AccountTypeDetector)
    extractor = AsyncMock(spec=TransactionExtractor)
    if detect_error is not None:
        detector.detect.side_effect = detect_error
    else:
        detector.detect.return_value = verdict
    extractor.extract.return_value = result
    return StatementAnalyzer(detector, extractor)


async def test_detected_institution_overwrites_extractor_value(
    document: Document, credit_verdict: AccountTypeVerdict, oxxo_payload: dict
):
    extracted = AnalysisResult.from_payload({**oxxo_payload, "institutionName": ""})
    analyzer = stub_analyzer(verdict=credit_verdict, result=extracted)

    result = await analyzer.analyze(document)

    assert result.institution_name == "X"
    assert result.account_category == AccountCategory.CREDIT_CARD
    analyzer.extractor.extract.assert_awaited_once_with(document, credit_verdict)


async def test_detected_category_overwrites_inconsistent_extractor_value(
    document: Document, debit_verdict: AccountTypeVerdict, oxxo_payload: dict
):
    extracted = AnalysisResult.from_payload({**oxxo_payload, "accountCategory": "CREDIT_CARD"})
    result = await stub_analyzer(verdict=debit_verdict, result=extracted).analyze(document)

    assert result.account_category == AccountCategory.DEBIT_ACCOUNT


async def test_missing_summary_is_incomplete(
    document: Document, debit_verdict: AccountTypeVerdict, oxxo_payload: dict
):
    payload = dict(oxxo_payload)
    del payload["summary"]
    analyzer = stub_analyzer(verdict=debit_verdict, result=AnalysisResult.from_payload(payload))

    with pytest.raises(IncompleteResultError) as exc_info:
        await analyzer.analyze(document)

    assert "summary" in str(exc_info.value)


async def test_missing_transactions_is_incomplete(
    document: Document, debit_verdict: AccountTypeVerdict, oxxo_payload: dict
):
    payload = dict(oxxo_payload)
    del payload["transactions"]
    analyzer = stub_analyzer(verdict=debit_verdict, result=AnalysisResult.from_payload(payload))

    with pytest.raises(IncompleteResultError):
        await analyzer.analyze(document)


async def test_detection_failure_skips_extraction(document: Document):
    analyzer = stub_analyzer(detect_error=UpstreamError("Claude API error: 500 - boom", status_code=500))

    with pytest.raises(UpstreamError):
        await analyzer.analyze(document)

    analyzer.extractor.extract.assert_not_awaited()


async def test_debit_statement_end_to_end(fake_claude: AsyncMock, document: Document, oxxo_payload: dict):
    """Two sequential calls on one client: detection answer, then extraction answer"""
    fake_claude.complete.side_effect = [
        '{"accountCategory": "DEBIT_ACCOUNT", "institutionName": "Banorte", "confidence": 92}',
        "```json\n" + json.dumps(oxxo_payload) + "\n```",
    ]

    result = await StatementAnalyzer.from_client(fake_claude).analyze(document)

    assert result.account_category == AccountCategory.DEBIT_ACCOUNT
    assert result.institution_name == "Banorte"
    assert len(result.transactions) == 1
    txn = result.transactions[0]
    assert txn.date == date(2024, 1, 15)
    assert txn.description == "OXXO CENTRO"
    assert txn.category == TransactionCategory.ALIMENTACION
    assert txn.amount == Decimal("-150.50")
    assert txn.kind == TransactionKind.EXPENSE
    assert result.summary.total_income == Decimal("0")
    assert result.summary.total_expenses == Decimal("-150.50")
    assert result.summary.net_balance == Decimal("-150.50")
    assert result.summary.transaction_count == 1
    assert result.summary.period == "Enero 2024"

    stages = [call.kwargs["stage"] for call in fake_claude.complete.await_args_list]
    assert stages == ["detection", "extraction"]


async def test_chatty_answer_without_sections_is_incomplete_not_malformed(
    fake_claude: AsyncMock, document: Document
):
    """Sanitizing and decoding succeed; the completeness check is what fails"""
    fake_claude.complete.side_effect = [
        '{"accountCategory": "DEBIT_ACCOUNT", "institutionName": "Banorte", "confidence": 92}',
        'Sure! ```json\n{"confidence":10}```',
    ]

    with pytest.raises(IncompleteResultError):
        await StatementAnalyzer.from_client(fake_claude).analyze(document)


async def test_low_confidence_is_logged_not_rejected(
    caplog: pytest.LogCaptureFixture, document: Document, debit_verdict: AccountTypeVerdict, oxxo_payload: dict
):
    extracted = AnalysisResult.from_payload({**oxxo_payload, "confidence": 20})

    with caplog.at_level(logging.WARNING):
        result = await stub_analyzer(verdict=debit_verdict, result=extracted).analyze(document)

    assert result.confidence == 20
    assert "Low confidence extraction" in caplog.text


async def test_unbalanced_summary_is_logged_not_rejected(
    caplog: pytest.LogCaptureFixture, document: Document, debit_verdict: AccountTypeVerdict, oxxo_payload: dict
):
    payload = {**oxxo_payload, "summary": {**oxxo_payload["summary"], "netBalance": 999}}

    with caplog.at_level(logging.WARNING):
        result = await stub_analyzer(verdict=debit_verdict, result=AnalysisResult.from_payload(payload)).analyze(document)

    assert result.summary.net_balance == Decimal("999")
    assert "does not match" in caplog.text
