"""History rendering - normalize and classify one page of backend records"""

from typing import Iterable, List

from pleasy_client.domain.classifier import DEFAULT_LOCALE, classify
from pleasy_client.domain.models import Account, Direction, HistoryEntry, TransactionPage
from pleasy_client.domain.normalizer import normalize_transaction


def build_history(records: Iterable[object], viewed_account: Account, locale: str = DEFAULT_LOCALE) -> List[HistoryEntry]:
    """
    Classify raw records from the viewed account's perspective.

    Records are independent; a malformed one renders as an OTHER row
    instead of breaking the page.
    """
    entries = []
    for record in records:
        transaction = normalize_transaction(record)
        entries.append(HistoryEntry(transaction=transaction, decision=classify(transaction, viewed_account, locale)))
    return entries


def build_history_page(page: TransactionPage, viewed_account: Account, locale: str = DEFAULT_LOCALE) -> List[HistoryEntry]:
    return build_history(page.records, viewed_account, locale)


def summarize(entries: Iterable[HistoryEntry]) -> dict:
    """Totals of money in and out for a rendered page; internal moves are excluded"""
    money_in = 0
    money_out = 0
    for entry in entries:
        amount = entry.decision.display_amount
        if entry.decision.direction is Direction.INTERNAL:
            continue
        if amount >= 0:
            money_in += amount
        else:
            money_out += -amount
    return {"money_in": money_in, "money_out": money_out, "net": money_in - money_out}
