"""Sign & category classification - how a transaction reads from one account"""

import logging
from typing import Dict, Tuple

from pleasy_client.domain.models import (
    Account,
    Category,
    Direction,
    PresentationDecision,
    Transaction,
)
from pleasy_client.infrastructure.observability.metrics import classification_fallback_counter

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "ko"

LOAN_DISBURSEMENT_CODES = frozenset({"INITIAL_DEPOSIT", "LOAN_DISBURSEMENT"})
LOAN_REPAYMENT_CODES = frozenset({"DEPOSIT", "TRANSFER_IN", "LOAN_PAYMENT"})
CREDIT_CODES = {
    "DEPOSIT": Category.DEPOSIT,
    "INITIAL_DEPOSIT": Category.DEPOSIT,
    "INTEREST": Category.INTEREST,
    "TRANSFER_IN": Category.TRANSFER_IN,
    "LOAN_DISBURSEMENT": Category.LOAN_DISBURSEMENT,
}
DEBIT_CODES = {
    "WITHDRAWAL": Category.WITHDRAWAL,
    "WITHDRAW": Category.WITHDRAWAL,
    "FEE": Category.FEE,
    "TRANSFER_OUT": Category.TRANSFER_OUT,
    "LOAN_PAYMENT": Category.LOAN_REPAYMENT,
    "LOAN_REPAYMENT": Category.LOAN_REPAYMENT,
    "PAYMENT": Category.PAYMENT,
}
# (category when debit, category when credit) for codes decided by the raw sign only
FALLBACK_CATEGORIES = {
    "WITHDRAWAL": (Category.WITHDRAWAL, Category.OTHER),
    "WITHDRAW": (Category.WITHDRAWAL, Category.OTHER),
    "PAYMENT": (Category.PAYMENT, Category.OTHER),
    "FEE": (Category.FEE, Category.OTHER),
    "TRANSFER": (Category.TRANSFER_OUT, Category.TRANSFER_IN),
    "TRANSFER_OUT": (Category.TRANSFER_OUT, Category.TRANSFER_IN),
    "INTEREST": (Category.INTEREST, Category.INTEREST),
}

GLYPHS = {Direction.CREDIT: "+", Direction.DEBIT: "-", Direction.INTERNAL: "↔"}

# (viewed account is a loan, category) -> label. New categories are added here only.
CATEGORY_LABELS: Dict[str, Dict[Tuple[bool, Category], str]] = {
    "ko": {
        (False, Category.DEPOSIT): "입금",
        (False, Category.WITHDRAWAL): "출금",
        (False, Category.TRANSFER_IN): "이체 입금",
        (False, Category.TRANSFER_OUT): "이체 출금",
        (False, Category.LOAN_DISBURSEMENT): "대출금 실행",
        (False, Category.LOAN_REPAYMENT): "대출금 상환",
        (False, Category.FEE): "수수료",
        (False, Category.INTEREST): "이자",
        (False, Category.PAYMENT): "결제",
        (False, Category.OTHER): "기타",
        (True, Category.DEPOSIT): "입금",
        (True, Category.WITHDRAWAL): "출금",
        (True, Category.TRANSFER_IN): "이체 입금",
        (True, Category.TRANSFER_OUT): "이체 출금",
        (True, Category.LOAN_DISBURSEMENT): "대출금 실행",
        (True, Category.LOAN_REPAYMENT): "대출금 상환",
        (True, Category.FEE): "수수료",
        (True, Category.INTEREST): "대출 이자",
        (True, Category.PAYMENT): "결제",
        (True, Category.OTHER): "기타",
    },
    "en": {
        (False, Category.DEPOSIT): "Deposit",
        (False, Category.WITHDRAWAL): "Withdrawal",
        (False, Category.TRANSFER_IN): "Transfer received",
        (False, Category.TRANSFER_OUT): "Transfer sent",
        (False, Category.LOAN_DISBURSEMENT): "Loan disbursement",
        (False, Category.LOAN_REPAYMENT): "Loan repayment",
        (False, Category.FEE): "Fee",
        (False, Category.INTEREST): "Interest",
        (False, Category.PAYMENT): "Payment",
        (False, Category.OTHER): "Other",
        (True, Category.DEPOSIT): "Deposit",
        (True, Category.WITHDRAWAL): "Withdrawal",
        (True, Category.TRANSFER_IN): "Transfer received",
        (True, Category.TRANSFER_OUT): "Transfer sent",
        (True, Category.LOAN_DISBURSEMENT): "Loan disbursed",
        (True, Category.LOAN_REPAYMENT): "Repayment",
        (True, Category.FEE): "Fee",
        (True, Category.INTEREST): "Loan interest",
        (True, Category.PAYMENT): "Payment",
        (True, Category.OTHER): "Other",
    },
}
INTERNAL_TRANSFER_LABELS = {"ko": "내 계좌 이체", "en": "Between my accounts"}


def category_label(category: Category, is_loan: bool, locale: str = DEFAULT_LOCALE) -> str:
    """Localized label for a category; unknown locales use the default"""
    table = CATEGORY_LABELS.get(locale, CATEGORY_LABELS[DEFAULT_LOCALE])
    return table[(is_loan, category)]


def classify(tx: Transaction, viewed_account: Account, locale: str = DEFAULT_LOCALE) -> PresentationDecision:
    """
    Decide direction, category and signed amount of tx as seen from viewed_account.

    Only tx, viewed_account.id and viewed_account.account_type are consulted,
    so the same inputs always give the same decision. Rules are evaluated in
    a fixed order and the first match wins.
    """
    is_loan = viewed_account.is_loan
    if is_loan:
        direction, category = _classify_for_loan(tx, viewed_account)
    else:
        direction, category = _classify_for_deposit_account(tx, viewed_account)

    if direction is Direction.DEBIT:
        display_amount = -tx.amount
    else:
        display_amount = tx.amount

    if direction is Direction.INTERNAL:
        label = INTERNAL_TRANSFER_LABELS.get(locale, INTERNAL_TRANSFER_LABELS[DEFAULT_LOCALE])
    else:
        label = category_label(category, is_loan, locale)

    return PresentationDecision(
        direction=direction,
        category=category,
        display_amount=display_amount,
        glyph=GLYPHS[direction],
        label=label,
    )


def _classify_for_loan(tx: Transaction, loan: Account) -> Tuple[Direction, Category]:
    code = tx.raw_type
    # Funds paid out to the borrower
    if tx.looks_like_disbursement or code in LOAN_DISBURSEMENT_CODES:
        return Direction.CREDIT, Category.LOAN_DISBURSEMENT
    # Debt decreasing
    if (
        _same_account(tx.to_account_id, loan.id)
        or code in LOAN_REPAYMENT_CODES
        or tx.looks_like_repayment
    ):
        return Direction.DEBIT, Category.LOAN_REPAYMENT
    return _raw_sign_fallback(tx, loan)


def _classify_for_deposit_account(tx: Transaction, account: Account) -> Tuple[Direction, Category]:
    code = tx.raw_type
    if code in CREDIT_CODES:
        return Direction.CREDIT, CREDIT_CODES[code]
    if code in DEBIT_CODES:
        return Direction.DEBIT, DEBIT_CODES[code]
    if code == "TRANSFER":
        is_source = _same_account(tx.from_account_id, account.id)
        is_destination = _same_account(tx.to_account_id, account.id)
        if is_source and is_destination:
            return Direction.INTERNAL, Category.TRANSFER_IN
        if is_source:
            return Direction.DEBIT, Category.TRANSFER_OUT
        if is_destination:
            return Direction.CREDIT, Category.TRANSFER_IN
    return _raw_sign_fallback(tx, account)


def _raw_sign_fallback(tx: Transaction, account: Account) -> Tuple[Direction, Category]:
    """
    Direction from the backend's own sign; logged as an ambiguous classification.

    The category follows the chosen direction, so a label never contradicts the glyph.
    """
    classification_fallback_counter.labels(account_kind="loan" if account.is_loan else "deposit").inc()
    logger.warning(
        "Ambiguous transaction direction, using raw amount sign",
        extra={
            "step": "ambiguous_direction",
            "transaction_id": str(tx.id),
            "account_id": str(account.id),
            "raw_type": tx.raw_type,
            "amount_sign": tx.amount_sign,
        },
    )
    debit_category, credit_category = FALLBACK_CATEGORIES.get(tx.raw_type, (Category.OTHER, Category.OTHER))
    if tx.amount_sign < 0:
        return Direction.DEBIT, debit_category
    return Direction.CREDIT, credit_category


def _same_account(candidate, account_id) -> bool:
    if candidate is None or account_id is None:
        return False
    return str(candidate) == str(account_id)
