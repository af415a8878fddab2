"""GET /v1/accounts/{account_id}/transactions - One page of classified history"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from pleasy_client.api.dependencies import get_account_client, get_history_client, get_request_id
from pleasy_client.api.v1.schemas import AccountSchema, HistoryResponse, HistorySummary, TransactionRow
from pleasy_client.config import settings
from pleasy_client.domain.exceptions import BankAPIError
from pleasy_client.domain.history import build_history_page, summarize
from pleasy_client.domain.models import HistoryFilter
from pleasy_client.infrastructure.clients.accounts import AccountClient
from pleasy_client.infrastructure.clients.history import HistoryClient

router = APIRouter()


@router.get("/accounts/{account_id}/transactions", response_model=HistoryResponse)
async def get_account_transactions(
    account_id: int,
    request: Request,
    page: int = Query(0, ge=0, description="Zero-based page number"),
    size: int = Query(10, ge=1, le=100, description="Records per page"),
    account_client: AccountClient = Depends(get_account_client),
    history_client: HistoryClient = Depends(get_history_client),
):
    """
    Fetch one history page and classify every row from this account's side.

    Flow:
    1. Look up the viewed account (its type decides loan semantics)
    2. Fetch one raw page from the backend
    3. Normalize and classify each record independently
    """
    request_id = get_request_id(request)
    try:
        account = await account_client.get_account(account_id)
        history_page = await history_client.list_transactions(account_id, HistoryFilter(page=page, size=size))
    except BankAPIError as e:
        logging.error(f"History fetch failed: {e}", extra={"request_id": request_id})
        if e.status_code == 404:
            raise HTTPException(status_code=404, detail="Account not found")
        raise HTTPException(status_code=503, detail="Banking service unavailable")

    if account.id is None:
        account.id = account_id
    entries = build_history_page(history_page, account, settings.display_locale)

    return HistoryResponse(
        account=AccountSchema.from_account(account, settings.display_locale),
        transactions=[TransactionRow.from_entry(entry, account.currency) for entry in entries],
        summary=HistorySummary(**summarize(entries)),
        page=history_page.page,
        total_pages=history_page.total_pages,
        has_more=history_page.has_more,
    )
