"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Union

from pleasy_client.domain.exceptions import SettlementError

AccountId = Union[int, str]


class AccountType(str, Enum):
    CHECKING = "CHECKING"
    SAVINGS = "SAVINGS"
    DEPOSIT = "DEPOSIT"
    FUND = "FUND"
    LOAN = "LOAN"
    OTHER = "OTHER"


class AccountStatus(str, Enum):
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"


class Direction(str, Enum):
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"
    INTERNAL = "INTERNAL"


class Category(str, Enum):
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    TRANSFER_IN = "TRANSFER_IN"
    TRANSFER_OUT = "TRANSFER_OUT"
    LOAN_DISBURSEMENT = "LOAN_DISBURSEMENT"
    LOAN_REPAYMENT = "LOAN_REPAYMENT"
    FEE = "FEE"
    INTEREST = "INTEREST"
    PAYMENT = "PAYMENT"
    OTHER = "OTHER"


class SettlementPhase(str, Enum):
    IDLE = "IDLE"
    AWAITING_COUNTERPART = "AWAITING_COUNTERPART"
    CLEARING = "CLEARING"
    CLOSING = "CLOSING"
    DONE = "DONE"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (SettlementPhase.DONE, SettlementPhase.FAILED)


class CloseVerb(str, Enum):
    """HTTP verb used for the close command"""

    PRIMARY = "PATCH"
    ALTERNATE = "PUT"


@dataclass
class Account:
    """Canonical bank account. LOAN balances are stored as non-positive debt."""

    id: Optional[AccountId]
    account_type: AccountType
    stored_balance: int
    status: AccountStatus = AccountStatus.ACTIVE
    currency: str = "KRW"
    account_number: Optional[str] = None
    name: Optional[str] = None
    product_id: Optional[AccountId] = None

    @property
    def is_loan(self) -> bool:
        return self.account_type is AccountType.LOAN

    @property
    def is_active(self) -> bool:
        return self.status is AccountStatus.ACTIVE


@dataclass
class Transaction:
    """Canonical transaction. Direction and sign are derived per viewed account."""

    id: Optional[AccountId]
    occurred_at: Optional[datetime]
    amount: int  # unsigned magnitude in minor units
    raw_type: str
    amount_sign: int = 1  # sign of the amount as the backend sent it
    counterparty_account_type: str = "unknown"
    from_account_id: Optional[AccountId] = None
    to_account_id: Optional[AccountId] = None
    from_account_number: Optional[str] = None
    to_account_number: Optional[str] = None
    description: str = ""
    balance_after: Optional[int] = None
    fee: int = 0
    status: Optional[str] = None
    looks_like_disbursement: bool = False
    looks_like_repayment: bool = False


@dataclass(frozen=True)
class PresentationDecision:
    """How one transaction reads from one account's point of view"""

    direction: Direction
    category: Category
    display_amount: int
    glyph: str
    label: str


@dataclass
class TransactionPage:
    """One page of raw history records as returned by the backend"""

    records: List[object]
    page: int = 0
    size: int = 0
    total_pages: int = 1
    total_elements: Optional[int] = None

    @property
    def has_more(self) -> bool:
        return self.page < self.total_pages - 1


@dataclass
class HistoryFilter:
    """Paging and ordering for a history request"""

    page: int = 0
    size: int = 10
    sort: str = "transactionDate,desc"


@dataclass
class HistoryEntry:
    """A normalized transaction paired with its decision for the viewed account"""

    transaction: Transaction
    decision: PresentationDecision


@dataclass
class SettlementState:
    """Progress of one clear-then-close workflow"""

    account: Account
    residual_balance: int
    phase: SettlementPhase = SettlementPhase.IDLE
    counterpart_account_id: Optional[AccountId] = None
    candidates: List[Account] = field(default_factory=list)
    history: List[SettlementPhase] = field(default_factory=lambda: [SettlementPhase.IDLE])
    clearing_transaction: Optional[Transaction] = None
    closed_account: Optional[Account] = None
    close_attempts: List[CloseVerb] = field(default_factory=list)
    error: Optional[SettlementError] = None

    @property
    def account_id(self) -> Optional[AccountId]:
        return self.account.id

    @property
    def requires_clearing(self) -> bool:
        return self.residual_balance != 0
