"""Pydantic schemas for API request/response validation"""

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from pleasy_client.domain.balances import balance_label, display_balance
from pleasy_client.domain.models import Account, HistoryEntry, SettlementState
from pleasy_client.utils.formatting import format_currency

AccountIdField = Union[int, str]


class AccountSchema(BaseModel):
    """Account as rendered on the dashboard"""

    id: Optional[AccountIdField]
    account_number: Optional[str] = None
    name: Optional[str] = None
    account_type: str
    status: str
    currency: str
    stored_balance: int
    display_balance: int
    balance_label: str
    balance_text: str

    @classmethod
    def from_account(cls, account: Account, locale: str) -> "AccountSchema":
        shown = display_balance(account)
        return cls(
            id=account.id,
            account_number=account.account_number,
            name=account.name,
            account_type=account.account_type.value,
            status=account.status.value,
            currency=account.currency,
            stored_balance=account.stored_balance,
            display_balance=shown,
            balance_label=balance_label(account, locale),
            balance_text=format_currency(shown, account.currency),
        )


class AccountsResponse(BaseModel):
    """Response for GET /v1/accounts"""

    accounts: List[AccountSchema]
    portfolio_total: int
    portfolio_total_text: str


class TransactionRow(BaseModel):
    """One history row, classified for the viewed account"""

    id: Optional[AccountIdField]
    occurred_at: Optional[datetime]
    raw_type: str
    direction: str
    category: str
    label: str
    glyph: str
    display_amount: int
    amount_text: str
    description: str
    balance_after: Optional[int] = None

    @classmethod
    def from_entry(cls, entry: HistoryEntry, currency: str) -> "TransactionRow":
        tx, decision = entry.transaction, entry.decision
        return cls(
            id=tx.id,
            occurred_at=tx.occurred_at,
            raw_type=tx.raw_type,
            direction=decision.direction.value,
            category=decision.category.value,
            label=decision.label,
            glyph=decision.glyph,
            display_amount=decision.display_amount,
            amount_text=format_currency(decision.display_amount, currency, signed=True),
            description=tx.description,
            balance_after=tx.balance_after,
        )


class HistorySummary(BaseModel):
    money_in: int
    money_out: int
    net: int


class HistoryResponse(BaseModel):
    """Response for GET /v1/accounts/{account_id}/transactions"""

    account: AccountSchema
    transactions: List[TransactionRow]
    summary: HistorySummary
    page: int
    total_pages: int
    has_more: bool


class CounterpartRequest(BaseModel):
    """Request body for POST /v1/accounts/{account_id}/settlement/counterpart"""

    counterpart_account_id: AccountIdField = Field(..., description="Account that sends or receives the residual")


class SettlementErrorSchema(BaseModel):
    reason: str
    phase: str
    message: str


class SettlementResponse(BaseModel):
    """Current state of a settlement workflow"""

    account_id: Optional[AccountIdField]
    phase: str
    history: List[str]
    residual_balance: int
    residual_text: str
    candidates: List[AccountSchema] = []
    counterpart_account_id: Optional[AccountIdField] = None
    clearing_transaction_id: Optional[AccountIdField] = None
    close_attempts: List[str] = []
    error: Optional[SettlementErrorSchema] = None

    @classmethod
    def from_state(cls, state: SettlementState, locale: str) -> "SettlementResponse":
        error = None
        if state.error is not None:
            error = SettlementErrorSchema(reason=state.error.reason, phase=state.error.phase, message=str(state.error))
        return cls(
            account_id=state.account_id,
            phase=state.phase.value,
            history=[phase.value for phase in state.history],
            residual_balance=state.residual_balance,
            residual_text=format_currency(state.residual_balance, state.account.currency),
            candidates=[AccountSchema.from_account(a, locale) for a in state.candidates],
            counterpart_account_id=state.counterpart_account_id,
            clearing_transaction_id=state.clearing_transaction.id if state.clearing_transaction else None,
            close_attempts=[verb.value for verb in state.close_attempts],
            error=error,
        )
