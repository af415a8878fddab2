"""Balance semantics - what an account's stored balance means to the user"""

from typing import Iterable

from pleasy_client.domain.models import Account

BALANCE_LABELS = {
    "ko": {"loan": "대출 잔액", "default": "잔액"},
    "en": {"loan": "Amount still owed", "default": "Balance"},
}


def display_balance(account: Account) -> int:
    """Balance as shown to the user: loans show the debt as a positive amount owed"""
    if account.is_loan:
        return abs(account.stored_balance)
    return account.stored_balance


def portfolio_contribution(account: Account) -> int:
    """
    Signed contribution to a net-worth total.

    Loans are already stored negative, so they subtract themselves and the
    total stays a plain sum with no per-type branching.
    """
    return account.stored_balance


def portfolio_total(accounts: Iterable[Account]) -> int:
    return sum(portfolio_contribution(account) for account in accounts)


def balance_label(account: Account, locale: str = "ko") -> str:
    labels = BALANCE_LABELS.get(locale, BALANCE_LABELS["ko"])
    return labels["loan"] if account.is_loan else labels["default"]


def settlement_residual(account: Account) -> int:
    """Amount a settlement has to move before close: balance left, or debt still owed"""
    return display_balance(account)
