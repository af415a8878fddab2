"""Transaction history API client"""

from typing import Optional

from pleasy_client.domain.models import AccountId, HistoryFilter, TransactionPage
from pleasy_client.infrastructure.clients.base import BackendClient, page_content


class HistoryClient(BackendClient):
    """Client for paged transaction history"""

    service = "history"

    async def list_transactions(self, account_id: AccountId, filter: Optional[HistoryFilter] = None) -> TransactionPage:
        """
        Fetch one page of raw history records for an account.

        Records are returned untouched; normalization happens per record so a
        bad row cannot fail the whole page.
        """
        filter = filter or HistoryFilter()
        data = await self._request(
            "GET",
            f"/api/transactions/account/{account_id}",
            params={"page": filter.page, "size": filter.size, "sort": filter.sort},
        )
        records = page_content(data)
        if isinstance(data, dict):
            return TransactionPage(
                records=records,
                page=_int(data.get("number"), filter.page),
                size=_int(data.get("size"), filter.size),
                total_pages=_int(data.get("totalPages"), 1),
                total_elements=data.get("totalElements"),
            )
        return TransactionPage(records=records, page=filter.page, size=filter.size, total_pages=1)


def _int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
