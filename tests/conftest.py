"""Pytest fixtures for testing"""

import pytest
from decimal import Decimal
from datetime import date
from pathlib import Path
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient
from statement_analyzer.api.main import create_app
from statement_analyzer.api.dependencies import get_upload_store
from statement_analyzer.config import settings
from statement_analyzer.domain.models import (
    AccountCategory,
    AccountTypeVerdict,
    AnalysisResult,
    AnalysisSummary,
    Document,
    Transaction,
    TransactionCategory,
    TransactionKind,
)
from statement_analyzer.infrastructure.storage.uploads import UploadStore


@pytest.fixture(autouse=True)
def claude_api_key(monkeypatch: pytest.MonkeyPatch) -> str:
    """Pretend the Claude API key is configured unless a test clears it"""
    monkeypatch.setattr(settings, "claude_api_key", "test-key")
    return "test-key"


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def client(upload_dir: Path) -> TestClient:
    """Create FastAPI test client with uploads in a temporary directory"""
    app = create_app()
    app.dependency_overrides[get_upload_store] = lambda: UploadStore(upload_dir)
    return TestClient(app)


@pytest.fixture
def document() -> Document:
    return Document(data=b"%PDF-1.4 persona=debit_banorte")


@pytest.fixture
def fake_claude() -> AsyncMock:
    """Stand-in for ClaudeClient; set complete.return_value / side_effect per test"""
    client = AsyncMock()
    client.complete = AsyncMock()
    return client


@pytest.fixture
def debit_verdict() -> AccountTypeVerdict:
    return AccountTypeVerdict(
        account_category=AccountCategory.DEBIT_ACCOUNT,
        institution_name="Banorte",
        confidence=92,
    )


@pytest.fixture
def credit_verdict() -> AccountTypeVerdict:
    return AccountTypeVerdict(
        account_category=AccountCategory.CREDIT_CARD,
        institution_name="X",
        confidence=90,
    )


@pytest.fixture
def oxxo_payload() -> dict:
    """Extraction answer for a single OXXO purchase on a debit account"""
    return {
        "confidence": 88,
        "transactions": [
            {
                "date": "2024-01-15",
                "description": "OXXO CENTRO",
                "category": "Alimentación",
                "amount": -150.50,
                "kind": "expense",
            }
        ],
        "summary": {
            "totalIncome": 0,
            "totalExpenses": -150.50,
            "netBalance": -150.50,
            "transactionCount": 1,
            "period": "Enero 2024",
        },
        "categoryBreakdown": {"Alimentación": -150.50},
    }


@pytest.fixture
def sample_result() -> AnalysisResult:
    """Complete analysis result as returned by the analyzer"""
    return AnalysisResult(
        confidence=88,
        institution_name="Banorte",
        account_category=AccountCategory.DEBIT_ACCOUNT,
        transactions=[
            Transaction(
                date=date(2024, 1, 15),
                description="OXXO CENTRO",
                category=TransactionCategory.ALIMENTACION,
                amount=Decimal("-150.50"),
                kind=TransactionKind.EXPENSE,
            ),
            Transaction(
                date=date(2024, 1, 31),
                description="NOMINA EMPRESA SA",
                category=TransactionCategory.TRANSFERENCIAS,
                amount=Decimal("15000.00"),
                kind=TransactionKind.INCOME,
            ),
        ],
        summary=AnalysisSummary(
            total_income=Decimal("15000.00"),
            total_expenses=Decimal("-150.50"),
            net_balance=Decimal("14849.50"),
            transaction_count=2,
            period="Enero 2024",
        ),
        category_breakdown={
            TransactionCategory.ALIMENTACION: Decimal("-150.50"),
            TransactionCategory.TRANSFERENCIAS: Decimal("15000.00"),
        },
    )
