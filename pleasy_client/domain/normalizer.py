"""
Record normalizer - translates every backend record shape into canonical entities.

The backend has been observed to send at least four transaction shapes:
- TransactionResponse:  transactionDatetime / type / fromAccountId / toAccountId
- Paged history rows:   transactionDate / transactionType / fromAccount{} / toAccount{}
- Open-banking rows:    tran_date + tran_time / inout_type / tran_amt / print_content
- Canonical dumps:      dataclasses.asdict(Transaction)

Each canonical field is resolved from a fixed priority list of source keys,
falling back to a documented default. Nothing here raises on bad input.
"""

import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, Mapping, Optional, Sequence

from pleasy_client.domain.models import (
    Account,
    AccountId,
    AccountStatus,
    AccountType,
    Transaction,
)
from pleasy_client.infrastructure.observability.metrics import malformed_record_counter
from pleasy_client.utils.date_utils import parse_compact_date, parse_timestamp

logger = logging.getLogger(__name__)

UNKNOWN_COUNTERPARTY = "unknown"
OTHER_TYPE = "OTHER"

# Per-field source keys, most specific first
ID_KEYS = ("id", "transactionId", "transaction_id", "tranId")
OCCURRED_AT_KEYS = (
    "transactionDateTime",
    "transactionDatetime",
    "transaction_datetime",
    "occurred_at",
    "occurredAt",
    "createdAt",
    "created_at",
    "transactionDate",
    "timestamp",
)
TYPE_KEYS = ("transactionType", "type", "raw_type", "tran_type")
AMOUNT_KEYS = ("amount", "tran_amt", "transactionAmount")
COUNTERPARTY_KEYS = ("counterpartyAccountType", "counterparty_account_type")
FROM_ID_KEYS = ("fromAccountId", "from_account_id")
TO_ID_KEYS = ("toAccountId", "to_account_id")
FROM_NUMBER_KEYS = ("fromAccountNumber", "from_account_number")
TO_NUMBER_KEYS = ("toAccountNumber", "to_account_number")
DESCRIPTION_KEYS = ("description", "memo", "print_content")
BALANCE_AFTER_KEYS = ("balanceAfterTransaction", "balanceAfter", "balance_after", "after_balance_amt")
FEE_KEYS = ("fee",)
STATUS_KEYS = ("status",)

ACCOUNT_ID_KEYS = ("id", "accountId", "account_id")
ACCOUNT_TYPE_KEYS = ("accountType", "account_type", "type", "productCategory")
ACCOUNT_BALANCE_KEYS = ("balance", "stored_balance", "currentBalance", "balance_amt")
ACCOUNT_STATUS_KEYS = ("status",)
ACCOUNT_ACTIVE_KEYS = ("isActive", "active", "is_active")

# Open-banking direction codes
INOUT_TYPES = {"입금": "DEPOSIT", "출금": "WITHDRAWAL", "IN": "DEPOSIT", "OUT": "WITHDRAWAL"}

DISBURSEMENT_TYPES = frozenset({"INITIAL_DEPOSIT", "LOAN_DISBURSEMENT"})
REPAYMENT_TYPES = frozenset({"LOAN_PAYMENT", "LOAN_REPAYMENT"})
DISBURSEMENT_KEYWORDS = ("실행", "disburse")
REPAYMENT_KEYWORDS = ("상환", "repay")
# Incoming codes that become repayments when the other side is a loan
LOAN_COUNTERPARTY_REPAYMENT_TYPES = frozenset({"DEPOSIT", "TRANSFER_IN"})

CLOSED_STATUSES = frozenset({"CLOSED", "TERMINATED", "INACTIVE", "해지"})


def normalize_transaction(raw: Any) -> Transaction:
    """Convert any known raw transaction shape into a canonical Transaction"""
    if isinstance(raw, Transaction):
        return raw
    if not isinstance(raw, Mapping):
        _report_malformed("transaction", raw)
        return Transaction(id=None, occurred_at=None, amount=0, raw_type=OTHER_TYPE, amount_sign=0)

    signed_amount = _to_minor_units(_first(raw, AMOUNT_KEYS))
    if signed_amount is None:
        signed_amount = 0
    amount = abs(signed_amount)
    amount_sign = _sign(signed_amount)
    if signed_amount >= 0 and "amount_sign" in raw:
        # Canonical dumps carry the magnitude and the sign separately
        amount_sign = _sign(_to_minor_units(raw.get("amount_sign")) or 0)

    raw_type = _resolve_type(raw)
    description = _text(_first(raw, DESCRIPTION_KEYS)) or ""
    counterparty_type = _resolve_counterparty_type(raw)
    disbursement, repayment = _loan_hints(raw_type, description, amount, counterparty_type)

    return Transaction(
        id=_identifier(_first(raw, ID_KEYS)),
        occurred_at=_resolve_occurred_at(raw),
        amount=amount,
        raw_type=raw_type,
        amount_sign=amount_sign,
        counterparty_account_type=counterparty_type,
        from_account_id=_identifier(_party(raw, FROM_ID_KEYS, "fromAccount", "id")),
        to_account_id=_identifier(_party(raw, TO_ID_KEYS, "toAccount", "id")),
        from_account_number=_text(_party(raw, FROM_NUMBER_KEYS, "fromAccount", "accountNumber")),
        to_account_number=_text(_party(raw, TO_NUMBER_KEYS, "toAccount", "accountNumber")),
        description=description,
        balance_after=_to_minor_units(_first(raw, BALANCE_AFTER_KEYS)),
        fee=abs(_to_minor_units(_first(raw, FEE_KEYS)) or 0),
        status=_upper(_first(raw, STATUS_KEYS)),
        looks_like_disbursement=disbursement,
        looks_like_repayment=repayment,
    )


def normalize_account(raw: Any) -> Account:
    """Convert any known raw account shape into a canonical Account"""
    if isinstance(raw, Account):
        return raw
    if not isinstance(raw, Mapping):
        _report_malformed("account", raw)
        return Account(id=None, account_type=AccountType.OTHER, stored_balance=0)

    account_type = _account_type(_first(raw, ACCOUNT_TYPE_KEYS))
    balance = _to_minor_units(_first(raw, ACCOUNT_BALANCE_KEYS)) or 0
    if account_type is AccountType.LOAN and balance > 0:
        # Some endpoints report outstanding debt as a positive number
        balance = -balance

    return Account(
        id=_identifier(_first(raw, ACCOUNT_ID_KEYS)),
        account_type=account_type,
        stored_balance=balance,
        status=_account_status(raw),
        currency=_upper(_first(raw, ("currency",))) or "KRW",
        account_number=_text(_first(raw, ("accountNumber", "account_number"))),
        name=_text(_first(raw, ("accountName", "name"))),
        product_id=_identifier(_first(raw, ("productId", "product_id"))),
    )


def normalize_transactions(records: Iterable[Any]) -> list[Transaction]:
    """Normalize a page of records; a corrupt record never drops the rest"""
    return [normalize_transaction(record) for record in records]


def normalize_accounts(records: Iterable[Any]) -> list[Account]:
    return [normalize_account(record) for record in records]


def _first(raw: Mapping, keys: Sequence[str]) -> Any:
    """First non-empty value among keys, in priority order"""
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None


def _party(raw: Mapping, flat_keys: Sequence[str], nested_key: str, nested_field: str) -> Any:
    value = _first(raw, flat_keys)
    if value is not None:
        return value
    nested = raw.get(nested_key)
    if isinstance(nested, Mapping):
        return nested.get(nested_field)
    return None


def _resolve_type(raw: Mapping) -> str:
    code = _upper(_first(raw, TYPE_KEYS))
    if code:
        return code
    inout = _text(raw.get("inout_type"))
    if inout:
        return INOUT_TYPES.get(inout.strip().upper(), OTHER_TYPE)
    return OTHER_TYPE


def _resolve_occurred_at(raw: Mapping):
    for key in OCCURRED_AT_KEYS:
        parsed = parse_timestamp(raw.get(key))
        if parsed is not None:
            return parsed
    tran_date = raw.get("tran_date")
    if tran_date is not None:
        return parse_compact_date(str(tran_date), _text(raw.get("tran_time")))
    return None


def _resolve_counterparty_type(raw: Mapping) -> str:
    value = _upper(_first(raw, COUNTERPARTY_KEYS))
    if not value or value == UNKNOWN_COUNTERPARTY.upper():
        return UNKNOWN_COUNTERPARTY
    return value


def _loan_hints(raw_type: str, description: str, amount: int, counterparty_type: str) -> tuple[bool, bool]:
    """
    Advisory loan hints from type codes, the counterparty and description keywords.

    An explicit type code always wins: neither a keyword nor the counterparty
    raises a hint that contradicts a disbursement or repayment type code.
    Money coming in from the other side of a LOAN counterparty reads as a repayment.
    """
    if raw_type in DISBURSEMENT_TYPES:
        return True, False
    if raw_type in REPAYMENT_TYPES:
        return False, True

    text = description.lower()
    keyword_disbursement = amount > 0 and any(word in text for word in DISBURSEMENT_KEYWORDS)
    if keyword_disbursement:
        return True, False
    keyword_repayment = amount > 0 and any(word in text for word in REPAYMENT_KEYWORDS)
    loan_counterparty = (
        amount > 0
        and raw_type in LOAN_COUNTERPARTY_REPAYMENT_TYPES
        and counterparty_type == AccountType.LOAN.value
    )
    return False, keyword_repayment or loan_counterparty


def _account_type(value: Any) -> AccountType:
    code = _upper(value)
    if code is None:
        return AccountType.OTHER
    try:
        return AccountType(code)
    except ValueError:
        return AccountType.OTHER


def _account_status(raw: Mapping) -> AccountStatus:
    status = _upper(_first(raw, ACCOUNT_STATUS_KEYS))
    if status is not None:
        return AccountStatus.CLOSED if status in CLOSED_STATUSES else AccountStatus.ACTIVE
    active = _first(raw, ACCOUNT_ACTIVE_KEYS)
    if isinstance(active, bool):
        return AccountStatus.ACTIVE if active else AccountStatus.CLOSED
    if isinstance(active, str):
        return AccountStatus.CLOSED if active.strip().lower() in ("false", "0", "n") else AccountStatus.ACTIVE
    return AccountStatus.ACTIVE


def _to_minor_units(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        number = Decimal(str(value).replace(",", "").strip())
        if not number.is_finite():
            return None
        return int(number.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except (InvalidOperation, ValueError):
        return None


def _identifier(value: Any) -> Optional[AccountId]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return None
    if not text.isascii():
        return text
    try:
        return int(text)
    except ValueError:
        return text


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _upper(value: Any) -> Optional[str]:
    if value is None:
        return None
    if hasattr(value, "value"):  # enum members from canonical dumps
        value = value.value
    text = str(value).strip().upper()
    return text or None


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def _report_malformed(entity: str, raw: Any) -> None:
    malformed_record_counter.labels(entity=entity).inc()
    logger.warning(
        "Malformed record normalized to defaults",
        extra={"entity": entity, "raw_kind": type(raw).__name__},
    )
