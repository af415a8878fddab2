"""
Settlement orchestrator - clear an account's balance, then close it.

Workflow phases:
    IDLE -> AWAITING_COUNTERPART -> CLEARING -> CLOSING -> DONE
    any non-terminal phase -> FAILED

Guarantees:
- Never closes an account that still holds a balance or debt: the clearing
  transfer must be confirmed before the close command is sent.
- The clearing transfer is sent at most once per workflow.
- The close step makes at most two attempts (primary verb, then alternate).
- One active workflow per account; terminal workflows are never reused.
"""

import logging
from contextlib import contextmanager
from typing import Dict, Iterable, List, Optional, Protocol

from pleasy_client.config import settings
from pleasy_client.domain.balances import settlement_residual
from pleasy_client.domain.exceptions import (
    BankAPIError,
    ClearingFailed,
    CloseFailed,
    NegativeResidualBalance,
    NoCounterpartAvailable,
    SettlementCancelled,
    SettlementError,
    SettlementInProgressError,
    SettlementStateError,
)
from pleasy_client.domain.models import (
    Account,
    AccountId,
    Category,
    CloseVerb,
    SettlementPhase,
    SettlementState,
    Transaction,
)
from pleasy_client.infrastructure.observability.logging import log_settlement
from pleasy_client.infrastructure.observability.metrics import record_close_attempt, record_settlement

logger = logging.getLogger(__name__)

FAILED_TRANSFER_STATUSES = frozenset({"FAILED", "REJECTED", "CANCELLED", "CANCELED", "ERROR"})
CLOSE_VERBS = (CloseVerb.PRIMARY, CloseVerb.ALTERNATE)


class AccountService(Protocol):
    async def get_account(self, account_id: AccountId) -> Account: ...

    async def list_accounts(self) -> List[Account]: ...

    async def close_account(self, account_id: AccountId, verb: CloseVerb = CloseVerb.PRIMARY) -> Account: ...


class TransferService(Protocol):
    async def transfer(
        self,
        from_account_id: AccountId,
        to_account_id: AccountId,
        amount: int,
        description: str,
        category: Optional[Category] = None,
    ) -> Transaction: ...


class SettlementRegistry:
    """Tracks which accounts have a settlement in flight"""

    def __init__(self):
        self._active: Dict[str, Optional["SettlementWorkflow"]] = {}

    def acquire(self, account_id: AccountId) -> None:
        key = str(account_id)
        if key in self._active:
            raise SettlementInProgressError(f"Settlement already in progress for account {account_id}")
        self._active[key] = None

    def attach(self, workflow: "SettlementWorkflow") -> None:
        self._active[str(workflow.state.account_id)] = workflow

    def release(self, account_id: AccountId) -> None:
        self._active.pop(str(account_id), None)

    def get(self, account_id: AccountId) -> Optional["SettlementWorkflow"]:
        return self._active.get(str(account_id))

    def is_active(self, account_id: AccountId) -> bool:
        return str(account_id) in self._active


class SettlementWorkflow:
    """State machine for closing one account"""

    def __init__(
        self,
        account: Account,
        accounts: AccountService,
        transfers: TransferService,
        registry: Optional[SettlementRegistry] = None,
        request_id: Optional[str] = None,
    ):
        self.state = SettlementState(account=account, residual_balance=settlement_residual(account))
        self._accounts = accounts
        self._transfers = transfers
        self._registry = registry
        self._request_id = request_id
        self._busy = False

    @property
    def phase(self) -> SettlementPhase:
        return self.state.phase

    @property
    def is_finished(self) -> bool:
        return self.state.phase.is_terminal

    def begin(self, available_accounts: Iterable[Account]) -> SettlementState:
        """
        Leave IDLE: pick eligible counterparts or skip clearing entirely.

        Fails without any remote call when the balance cannot be cleared.
        """
        self._require(SettlementPhase.IDLE)
        account = self.state.account

        if not account.is_loan and account.stored_balance < 0:
            self._fail(NegativeResidualBalance(
                f"Account {account.id} is overdrawn by {-account.stored_balance}; cannot settle by transfer",
                phase=SettlementPhase.IDLE.value,
            ))
            return self.state

        if not self.state.requires_clearing:
            self._transition(SettlementPhase.CLOSING)
            return self.state

        candidates = eligible_counterparts(account, available_accounts)
        if not candidates:
            self._fail(NoCounterpartAvailable(
                f"No other active account can take the residual balance of account {account.id}",
                phase=SettlementPhase.IDLE.value,
            ))
            return self.state

        self.state.candidates = candidates
        self._transition(SettlementPhase.AWAITING_COUNTERPART)
        return self.state

    async def select_counterpart(self, counterpart_id: AccountId) -> SettlementState:
        """Clear the balance against the chosen account, then close. Runs to a terminal phase."""
        self._require(SettlementPhase.AWAITING_COUNTERPART)
        counterpart = next((a for a in self.state.candidates if str(a.id) == str(counterpart_id)), None)
        if counterpart is None:
            raise SettlementStateError(f"Account {counterpart_id} is not an eligible counterpart")

        with self._remote_call():
            self.state.counterpart_account_id = counterpart.id
            self._transition(SettlementPhase.CLEARING)
            if not await self._clear(counterpart):
                return self.state
            self._transition(SettlementPhase.CLOSING)
            await self._close()
        return self.state

    async def close(self) -> SettlementState:
        """Run the close step for a workflow that needed no clearing"""
        self._require(SettlementPhase.CLOSING)
        if self.state.close_attempts:
            raise SettlementStateError("Close step already attempted")
        with self._remote_call():
            await self._close()
        return self.state

    def cancel(self) -> SettlementState:
        """Abandon the workflow; only possible before any funds move"""
        if self.is_finished:
            raise SettlementStateError("Settlement already finished")
        if self._busy or self.state.phase not in (SettlementPhase.IDLE, SettlementPhase.AWAITING_COUNTERPART):
            raise SettlementStateError(
                f"Settlement cannot be cancelled in phase {self.state.phase.value}"
            )
        self._fail(SettlementCancelled("Settlement cancelled before clearing", phase=self.state.phase.value))
        return self.state

    async def _clear(self, counterpart: Account) -> bool:
        account = self.state.account
        amount = self.state.residual_balance
        try:
            if account.is_loan:
                transaction = await self._transfers.transfer(
                    counterpart.id,
                    account.id,
                    amount,
                    settings.loan_settlement_description,
                    category=Category.LOAN_REPAYMENT,
                )
            else:
                transaction = await self._transfers.transfer(
                    account.id,
                    counterpart.id,
                    amount,
                    settings.settlement_description,
                )
        except Exception as e:  # timeouts and transport faults end up here too
            self._fail(ClearingFailed(str(e), phase=SettlementPhase.CLEARING.value, cause=e))
            return False

        if transaction.status in FAILED_TRANSFER_STATUSES:
            self._fail(ClearingFailed(
                f"Clearing transfer {transaction.id} reported status {transaction.status}",
                phase=SettlementPhase.CLEARING.value,
            ))
            return False

        self.state.clearing_transaction = transaction
        logger.info(
            "Clearing transfer confirmed",
            extra={
                "request_id": self._request_id,
                "account_id": str(account.id),
                "counterpart_account_id": str(counterpart.id),
                "amount": amount,
                "transaction_id": str(transaction.id),
            },
        )
        return True

    async def _close(self) -> None:
        account_id = self.state.account_id
        last_error: Optional[Exception] = None

        for verb in CLOSE_VERBS:
            self.state.close_attempts.append(verb)
            try:
                closed = await self._accounts.close_account(account_id, verb)
            except Exception as e:
                record_close_attempt(verb.value, ok=False)
                last_error = e
                logger.warning(
                    "Close attempt failed",
                    extra={"request_id": self._request_id, "account_id": str(account_id), "verb": verb.value},
                )
                if isinstance(e, BankAPIError) and e.is_definitive_rejection:
                    break
                continue

            record_close_attempt(verb.value, ok=True)
            self.state.closed_account = closed
            self._transition(SettlementPhase.DONE)
            self._finish()
            return

        if self.state.clearing_transaction is not None:
            message = f"Funds were moved but account {account_id} is still open: {last_error}"
        else:
            message = f"Account {account_id} could not be closed: {last_error}"
        self._fail(CloseFailed(message, phase=SettlementPhase.CLOSING.value, cause=last_error))

    def _require(self, phase: SettlementPhase) -> None:
        if self.is_finished:
            raise SettlementStateError("Settlement already finished; start a new one")
        if self._busy:
            raise SettlementStateError("A settlement step is still in flight")
        if self.state.phase is not phase:
            raise SettlementStateError(
                f"Expected phase {phase.value}, workflow is in {self.state.phase.value}"
            )

    @contextmanager
    def _remote_call(self):
        self._busy = True
        try:
            yield
        finally:
            self._busy = False

    def _transition(self, phase: SettlementPhase) -> None:
        self.state.phase = phase
        self.state.history.append(phase)

    def _fail(self, error: SettlementError) -> None:
        self.state.error = error
        self._transition(SettlementPhase.FAILED)
        self._finish()

    def _finish(self) -> None:
        error = self.state.error
        record_settlement(done=error is None, reason=error.reason if error else None)
        log_settlement(
            self._request_id,
            self.state.account_id,
            error.phase if error else self.state.phase.value,
            error.reason if error else None,
            len(self.state.close_attempts),
        )
        if self._registry is not None:
            self._registry.release(self.state.account_id)


class SettlementOrchestrator:
    """Entry point that looks accounts up and keeps one workflow per account"""

    def __init__(
        self,
        accounts: AccountService,
        transfers: TransferService,
        registry: Optional[SettlementRegistry] = None,
    ):
        self.accounts = accounts
        self.transfers = transfers
        self.registry = registry if registry is not None else SettlementRegistry()

    async def start(
        self,
        account_id: AccountId,
        request_id: Optional[str] = None,
        available_accounts: Optional[List[Account]] = None,
    ) -> SettlementWorkflow:
        """
        Start closing an account.

        Rejects immediately if a workflow for the account is in flight. A
        zero-balance account goes straight through the close step. Callers
        that already hold the account list pass it in; otherwise it is read
        from the backend. Deciding eligibility itself never calls out.

        Raises:
            SettlementInProgressError: Account already being settled
            BankAPIError: Account lookup failed; nothing was started
        """
        self.registry.acquire(account_id)
        try:
            account = await self.accounts.get_account(account_id)
            if account.id is None:
                account.id = account_id
            if available_accounts is None:
                available_accounts = await self.accounts.list_accounts()
        except Exception:
            self.registry.release(account_id)
            raise
        if not account.is_active:
            self.registry.release(account_id)
            raise SettlementStateError(f"Account {account_id} is already closed")

        workflow = SettlementWorkflow(account, self.accounts, self.transfers, self.registry, request_id)
        self.registry.attach(workflow)
        workflow.begin(available_accounts)
        if workflow.phase is SettlementPhase.CLOSING:
            await workflow.close()
        return workflow

    async def select_counterpart(self, account_id: AccountId, counterpart_id: AccountId) -> SettlementWorkflow:
        workflow = self._active(account_id)
        await workflow.select_counterpart(counterpart_id)
        return workflow

    def cancel(self, account_id: AccountId) -> SettlementWorkflow:
        workflow = self._active(account_id)
        workflow.cancel()
        return workflow

    async def settle(
        self,
        account_id: AccountId,
        counterpart_id: Optional[AccountId] = None,
        request_id: Optional[str] = None,
    ) -> SettlementState:
        """Run a whole settlement; without a counterpart the first candidate is used"""
        workflow = await self.start(account_id, request_id)
        if workflow.phase is SettlementPhase.AWAITING_COUNTERPART:
            chosen = counterpart_id if counterpart_id is not None else workflow.state.candidates[0].id
            try:
                await workflow.select_counterpart(chosen)
            except SettlementStateError:
                workflow.cancel()
                raise
        return workflow.state

    def _active(self, account_id: AccountId) -> SettlementWorkflow:
        workflow = self.registry.get(account_id)
        if workflow is None:
            raise SettlementStateError(f"No settlement in progress for account {account_id}")
        return workflow


def eligible_counterparts(account: Account, available_accounts: Iterable[Account]) -> List[Account]:
    """Other active, non-loan accounts that can send or receive the residual"""
    return [
        candidate
        for candidate in available_accounts
        if candidate.is_active
        and not candidate.is_loan
        and candidate.id is not None
        and str(candidate.id) != str(account.id)
    ]
