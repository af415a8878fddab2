"""Transfer API client"""

from typing import Optional

from pleasy_client.domain.exceptions import TransferValidationError
from pleasy_client.domain.models import AccountId, Category, Transaction
from pleasy_client.domain.normalizer import normalize_transaction
from pleasy_client.infrastructure.clients.base import BackendClient

# Wire transaction type codes the backend expects for tagged transfers
WIRE_TRANSACTION_TYPES = {
    Category.LOAN_REPAYMENT: "LOAN_PAYMENT",
    Category.LOAN_DISBURSEMENT: "LOAN_DISBURSEMENT",
}


class TransferClient(BackendClient):
    """Client for moving money between accounts"""

    service = "transfers"

    async def transfer(
        self,
        from_account_id: AccountId,
        to_account_id: AccountId,
        amount: int,
        description: str,
        category: Optional[Category] = None,
    ) -> Transaction:
        """
        Submit one transfer. Never retried here; retrying is the caller's call.

        Raises:
            TransferValidationError: Non-positive amount or same source and destination
            BankAPIError: Backend rejected the transfer or was unreachable
        """
        if amount is None or amount <= 0:
            raise TransferValidationError("Transfer amount must be greater than zero")
        if str(from_account_id) == str(to_account_id):
            raise TransferValidationError("Source and destination accounts are the same")

        payload = {
            "fromAccountId": from_account_id,
            "toAccountId": to_account_id,
            "amount": amount,
            "description": description,
        }
        if category is not None:
            payload["transactionType"] = WIRE_TRANSACTION_TYPES.get(category, category.value)

        data = await self._request("POST", "/api/transactions/transfer", json=payload)
        return normalize_transaction(data)
