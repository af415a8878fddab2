"""Account API client: lookup, listing and the close command"""

from typing import List

from pleasy_client.config import settings
from pleasy_client.domain.models import Account, AccountId, AccountStatus, AccountType, CloseVerb
from pleasy_client.domain.normalizer import normalize_account, normalize_accounts
from pleasy_client.infrastructure.clients.base import BackendClient, page_content


class AccountClient(BackendClient):
    """Client for the backend account endpoints"""

    service = "accounts"

    async def get_account(self, account_id: AccountId) -> Account:
        data = await self._request("GET", f"/api/accounts/{account_id}")
        return normalize_account(data)

    async def list_accounts(self) -> List[Account]:
        """Accounts owned by the authenticated user"""
        data = await self._request("GET", "/api/accounts/my")
        return normalize_accounts(page_content(data))

    async def close_account(self, account_id: AccountId, verb: CloseVerb = CloseVerb.PRIMARY) -> Account:
        """
        Issue one close command with the given verb.

        Backends serve the close endpoint on either PATCH or PUT; the PUT
        flavour expects the target status in its body. No retry happens here.
        """
        path = f"/api/accounts/{account_id}/close"
        if verb is CloseVerb.ALTERNATE:
            data = await self._request(
                verb.value,
                path,
                json={"status": "CLOSED", "updateReason": settings.close_update_reason},
            )
        else:
            data = await self._request(verb.value, path)
        if data is None:
            # 204 No Content: the close went through but nothing was echoed back
            return Account(id=account_id, account_type=AccountType.OTHER, stored_balance=0, status=AccountStatus.CLOSED)
        return normalize_account(data)
