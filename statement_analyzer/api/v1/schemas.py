"""Pydantic schemas for API request/response validation"""

from datetime import date as date_type
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from statement_analyzer.domain.models import AnalysisResult


class CamelModel(BaseModel):
    """Snake case in Python, camelCase on the wire"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalyzeBase64Request(CamelModel):
    """Request body for POST /api/analyze-base64"""

    base64_data: Optional[str] = Field(None, description="Statement PDF as base64 or a data URL")


class TransactionSchema(CamelModel):
    date: date_type
    description: str
    category: str
    amount: float
    kind: str


class SummarySchema(CamelModel):
    total_income: float
    total_expenses: float
    net_balance: float
    transaction_count: int
    period: str


class AnalysisResponse(CamelModel):
    """Response for POST /api/analyze-base64 and POST /api/analyze-pdf"""

    confidence: Optional[int] = None
    institution_name: str
    account_category: str
    transactions: List[TransactionSchema]
    summary: SummarySchema
    category_breakdown: Dict[str, float]

    @classmethod
    def from_result(cls, result: AnalysisResult) -> "AnalysisResponse":
        return cls(
            confidence=result.confidence,
            institution_name=result.institution_name,
            account_category=result.account_category.value,
            transactions=[
                TransactionSchema(
                    date=txn.date,
                    description=txn.description,
                    category=txn.category.value,
                    amount=float(txn.amount),
                    kind=txn.kind.value,
                )
                for txn in result.transactions
            ],
            summary=SummarySchema(
                total_income=float(result.summary.total_income),
                total_expenses=float(result.summary.total_expenses),
                net_balance=float(result.summary.net_balance),
                transaction_count=result.summary.transaction_count,
                period=result.summary.period,
            ),
            category_breakdown={
                category.value: float(amount) for category, amount in result.category_breakdown.items()
            },
        )


class ErrorResponse(BaseModel):
    """Failure body returned by the analysis endpoints"""

    error: str
    details: Optional[str] = None


class HealthResponse(CamelModel):
    """Response for GET /health"""

    status: str
    timestamp: str
    environment: str
    service: str
    claude_api_configured: bool
