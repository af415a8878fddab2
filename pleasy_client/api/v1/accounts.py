"""GET /v1/accounts - Dashboard accounts with display balances and net worth"""

from fastapi import APIRouter, Depends

from pleasy_client.api.dependencies import get_account_client
from pleasy_client.api.v1.schemas import AccountSchema, AccountsResponse
from pleasy_client.config import settings
from pleasy_client.domain.balances import portfolio_total
from pleasy_client.infrastructure.clients.accounts import AccountClient
from pleasy_client.utils.formatting import format_currency

router = APIRouter()


@router.get("/accounts", response_model=AccountsResponse)
async def list_accounts(account_client: AccountClient = Depends(get_account_client)):
    """
    List the caller's accounts.

    Loan balances are shown as the positive amount owed, while the
    portfolio total subtracts them. Backend failures surface as 503.
    """
    accounts = await account_client.list_accounts()

    # Net worth uses the currency of the first account; mixed currencies are not converted
    currency = accounts[0].currency if accounts else "KRW"
    total = portfolio_total(accounts)
    return AccountsResponse(
        accounts=[AccountSchema.from_account(a, settings.display_locale) for a in accounts],
        portfolio_total=total,
        portfolio_total_text=format_currency(total, currency),
    )
