"""Domain models - pure Python dataclasses representing statement analysis entities"""

import base64
import binascii
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Optional

from statement_analyzer.domain.exceptions import MalformedResponseError

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
THOUSANDS_GROUPED_PATTERN = re.compile(r"^[+-]?\d{1,3}(,\d{3})+(\.\d+)?$")


class AccountCategory(str, Enum):
    """Kind of account a statement belongs to; selects the extraction template"""

    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_ACCOUNT = "DEBIT_ACCOUNT"


class TransactionCategory(str, Enum):
    """Fixed spending catalog used to classify transactions"""

    ALIMENTACION = "Alimentación"
    TRANSPORTE = "Transporte"
    VIVIENDA = "Vivienda"
    ENTRETENIMIENTO = "Entretenimiento"
    SALUD = "Salud"
    EDUCACION = "Educación"
    COMPRAS = "Compras"
    SERVICIOS = "Servicios"
    TRANSFERENCIAS = "Transferencias"
    OTROS = "Otros"

    @classmethod
    def from_label(cls, label: Any) -> "TransactionCategory":
        """Map a model-provided label onto the catalog; unknown labels become Otros"""
        try:
            return cls(str(label).strip())
        except ValueError:
            logger.warning(f"Unknown transaction category {label!r}, using {cls.OTROS.value}")
            return cls.OTROS


class TransactionKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


# Spanish labels used by earlier prompt versions
KIND_ALIASES = {
    "ingreso": TransactionKind.INCOME,
    "gasto": TransactionKind.EXPENSE,
}


@dataclass(frozen=True)
class Document:
    """Statement payload as received at the request boundary"""

    data: bytes
    media_type: str = PDF_MEDIA_TYPE

    @classmethod
    def from_base64(cls, payload: str) -> "Document":
        """
        Decode an inline base64 payload.

        Accepts a bare base64 string or a data URL
        ("data:application/pdf;base64,...") whose media type is kept.

        Raises:
            ValueError: If the payload is empty or not valid base64
        """
        media_type = PDF_MEDIA_TYPE
        payload = payload.strip()
        if payload.startswith("data:") and "," in payload:
            header, payload = payload.split(",", 1)
            declared = header[len("data:"):].split(";", 1)[0]
            if declared:
                media_type = declared

        # Line-wrapped base64 is common from browser and CLI encoders
        payload = "".join(payload.split())
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"Invalid base64 payload: {e}") from e

        if not data:
            raise ValueError("Empty document payload")

        return cls(data=data, media_type=media_type)

    def as_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


@dataclass
class AccountTypeVerdict:
    """Output of account type detection"""

    account_category: AccountCategory
    institution_name: str
    confidence: int

    @classmethod
    def from_payload(cls, payload: Any, raw_text: str | None = None) -> "AccountTypeVerdict":
        """
        Build a verdict from the decoded detection answer.

        Raises:
            MalformedResponseError: If a required field is missing or invalid
        """
        if not isinstance(payload, dict):
            raise MalformedResponseError("Detection answer is not a JSON object", raw_text)

        try:
            account_category = AccountCategory(payload["accountCategory"])
        except KeyError as e:
            raise MalformedResponseError("Detection answer has no accountCategory", raw_text) from e
        except ValueError as e:
            raise MalformedResponseError(
                f"Unknown account category {payload['accountCategory']!r}", raw_text
            ) from e

        return cls(
            account_category=account_category,
            institution_name=str(payload.get("institutionName") or ""),
            confidence=_parse_confidence(payload.get("confidence"), raw_text),
        )


@dataclass
class Transaction:
    """Single statement movement; expenses are negative, income positive"""

    date: date
    description: str
    category: TransactionCategory
    amount: Decimal
    kind: TransactionKind

    @classmethod
    def from_payload(cls, payload: Any, raw_text: str | None = None) -> "Transaction":
        if not isinstance(payload, dict):
            raise MalformedResponseError("Transaction entry is not a JSON object", raw_text)

        if payload.get("description") is None:
            raise MalformedResponseError("Transaction entry has no description", raw_text)

        try:
            txn_date = date.fromisoformat(str(payload["date"]))
            description = str(payload["description"])
            amount = _parse_amount(payload["amount"])
            kind_label = str(payload.get("kind") or payload["type"]).strip().lower()
        except (KeyError, ValueError, TypeError, InvalidOperation) as e:
            raise MalformedResponseError(f"Invalid transaction entry: {e!r}", raw_text) from e

        kind = KIND_ALIASES.get(kind_label)
        if kind is None:
            try:
                kind = TransactionKind(kind_label)
            except ValueError as e:
                raise MalformedResponseError(f"Unknown transaction kind {kind_label!r}", raw_text) from e

        return cls(
            date=txn_date,
            description=description,
            category=TransactionCategory.from_label(payload.get("category", TransactionCategory.OTROS.value)),
            amount=amount,
            kind=kind,
        )


@dataclass
class AnalysisSummary:
    """Statement totals as reported by the model (not recomputed)"""

    total_income: Decimal
    total_expenses: Decimal
    net_balance: Decimal
    transaction_count: int
    period: str

    @classmethod
    def from_payload(cls, payload: Any, raw_text: str | None = None) -> "AnalysisSummary":
        if not isinstance(payload, dict):
            raise MalformedResponseError("Summary is not a JSON object", raw_text)

        try:
            return cls(
                total_income=_parse_amount(payload["totalIncome"]),
                total_expenses=_parse_amount(payload["totalExpenses"]),
                net_balance=_parse_amount(payload["netBalance"]),
                transaction_count=_parse_count(payload["transactionCount"]),
                period=str(payload.get("period") or ""),
            )
        except (KeyError, ValueError, TypeError, InvalidOperation) as e:
            raise MalformedResponseError(f"Invalid summary: {e!r}", raw_text) from e

    @property
    def is_balanced(self) -> bool:
        return self.total_income + self.total_expenses == self.net_balance


@dataclass
class AnalysisResult:
    """
    Aggregate returned to callers.

    transactions and summary are optional only while the result is being
    assembled; the analyzer rejects results that lack either.
    """

    confidence: Optional[int] = None
    institution_name: str = ""
    account_category: Optional[AccountCategory] = None
    transactions: Optional[List[Transaction]] = None
    summary: Optional[AnalysisSummary] = None
    category_breakdown: Dict[TransactionCategory, Decimal] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any, raw_text: str | None = None) -> "AnalysisResult":
        """
        Build a result from the decoded extraction answer.

        Missing transactions/summary keys are kept as None; fields that are
        present but have the wrong shape raise MalformedResponseError.
        """
        if not isinstance(payload, dict):
            raise MalformedResponseError("Extraction answer is not a JSON object", raw_text)

        transactions = None
        if payload.get("transactions") is not None:
            if not isinstance(payload["transactions"], list):
                raise MalformedResponseError("transactions is not a list", raw_text)
            transactions = [Transaction.from_payload(txn, raw_text) for txn in payload["transactions"]]

        summary = None
        if payload.get("summary") is not None:
            summary = AnalysisSummary.from_payload(payload["summary"], raw_text)

        account_category = None
        # Overwritten by the detected verdict later; an unknown label is not an error here
        if payload.get("accountCategory") in {c.value for c in AccountCategory}:
            account_category = AccountCategory(payload["accountCategory"])

        confidence = None
        if payload.get("confidence") is not None:
            confidence = _parse_confidence(payload["confidence"], raw_text)

        return cls(
            confidence=confidence,
            institution_name=str(payload.get("institutionName") or payload.get("bankDetected") or ""),
            account_category=account_category,
            transactions=transactions,
            summary=summary,
            category_breakdown=_parse_breakdown(payload.get("categoryBreakdown"), raw_text),
        )


def _normalize_amount_text(text: str) -> str:
    """
    Reduce a peso amount string to Decimal syntax.

    "$1,234.56" and "$1.234,56" both become "1234.56": when both separators
    appear the last one is the decimal mark. With commas only, "1,234" is
    thousands grouping and "1234,5" a decimal comma; anything else raises.
    """
    text = text.replace("$", "").replace(" ", "").strip()
    if "," in text and "." in text:
        if text.rfind(",") > text.rfind("."):
            return text.replace(".", "").replace(",", ".")
        return text.replace(",", "")
    if "," in text:
        if THOUSANDS_GROUPED_PATTERN.match(text):
            return text.replace(",", "")
        if text.count(",") == 1:
            return text.replace(",", ".")
        raise ValueError(f"Ambiguous amount: {text!r}")
    return text


def _parse_amount(value: Any) -> Decimal:
    """Decimal from a JSON number or a "$1,234.56" / "$1.234,56" string"""
    if isinstance(value, bool):
        raise TypeError(f"Boolean is not an amount: {value!r}")
    if isinstance(value, str):
        value = _normalize_amount_text(value)
    amount = Decimal(str(value))
    # Must survive the float conversion at the response boundary
    if not amount.is_finite() or not math.isfinite(float(amount)):
        raise ValueError(f"Non-finite amount: {value!r}")
    return amount


def _parse_count(value: Any) -> int:
    if isinstance(value, bool):
        raise TypeError(f"Boolean is not a count: {value!r}")
    count = Decimal(str(value))
    if not count.is_finite() or count != count.to_integral_value() or count < 0:
        raise ValueError(f"Invalid transaction count: {value!r}")
    return int(count)


def _parse_confidence(value: Any, raw_text: str | None) -> int:
    try:
        confidence = int(round(float(value)))
    except (TypeError, ValueError, OverflowError) as e:
        raise MalformedResponseError(f"Invalid confidence {value!r}", raw_text) from e

    if not 0 <= confidence <= 100:
        raise MalformedResponseError(f"Confidence out of range: {confidence}", raw_text)
    return confidence


def _parse_breakdown(value: Any, raw_text: str | None) -> Dict[TransactionCategory, Decimal]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MalformedResponseError("categoryBreakdown is not a JSON object", raw_text)

    breakdown: Dict[TransactionCategory, Decimal] = {}
    for label, amount in value.items():
        category = TransactionCategory.from_label(label)
        try:
            breakdown[category] = breakdown.get(category, Decimal("0")) + _parse_amount(amount)
        except (ValueError, TypeError, InvalidOperation) as e:
            raise MalformedResponseError(f"Invalid amount for {label!r}: {amount!r}", raw_text) from e
    return breakdown
