"""Unit tests for the banking backend clients"""

import json

import httpx
import pytest

from pleasy_client.config import settings
from pleasy_client.domain.exceptions import BankAPIError, TransferValidationError
from pleasy_client.domain.models import AccountStatus, Category, CloseVerb, HistoryFilter
from pleasy_client.infrastructure.clients.accounts import AccountClient
from pleasy_client.infrastructure.clients.history import HistoryClient
from pleasy_client.infrastructure.clients.transfers import TransferClient

BASE_URL = "http://bank.test"


class Recorder:
    """MockTransport handler that records requests and replays one response"""

    def __init__(self, response=None, error=None):
        self.requests = []
        self.response = response if response is not None else httpx.Response(200, json={})
        self.error = error

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error(f"simulated {self.error.__name__}", request=request)
        return self.response

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


async def test_get_account_normalizes_loan_balance():
    recorder = Recorder(httpx.Response(200, json={"id": 3, "accountType": "LOAN", "balance": 3000000}))
    client = AccountClient(base_url=BASE_URL, transport=recorder.transport)

    account = await client.get_account(3)

    assert recorder.requests[0].method == "GET"
    assert recorder.requests[0].url.path == "/api/accounts/3"
    assert account.is_loan
    assert account.stored_balance == -3000000


async def test_list_accounts_reads_paged_content():
    recorder = Recorder(httpx.Response(200, json={
        "content": [
            {"id": 1, "accountType": "CHECKING", "balance": 1000},
            {"id": 2, "accountType": "SAVINGS", "balance": 2000},
        ],
        "totalPages": 1,
    }))
    client = AccountClient(base_url=BASE_URL, transport=recorder.transport)

    accounts = await client.list_accounts()

    assert recorder.requests[0].url.path == "/api/accounts/my"
    assert [a.id for a in accounts] == [1, 2]


async def test_bearer_token_is_forwarded():
    recorder = Recorder(httpx.Response(200, json=[]))
    client = AccountClient(base_url=BASE_URL, token="abc123", transport=recorder.transport)

    await client.list_accounts()

    assert recorder.requests[0].headers["Authorization"] == "Bearer abc123"


async def test_close_with_primary_verb_sends_no_body():
    recorder = Recorder(httpx.Response(200, json={"id": 1, "accountType": "CHECKING", "balance": 0, "status": "CLOSED"}))
    client = AccountClient(base_url=BASE_URL, transport=recorder.transport)

    account = await client.close_account(1)

    request = recorder.requests[0]
    assert request.method == "PATCH"
    assert request.url.path == "/api/accounts/1/close"
    assert request.content == b""
    assert account.status is AccountStatus.CLOSED


async def test_close_with_alternate_verb_sends_target_status():
    recorder = Recorder(httpx.Response(200, json={"id": 1, "accountType": "CHECKING", "balance": 0, "status": "CLOSED"}))
    client = AccountClient(base_url=BASE_URL, transport=recorder.transport)

    await client.close_account(1, CloseVerb.ALTERNATE)

    request = recorder.requests[0]
    assert request.method == "PUT"
    assert json.loads(request.content) == {"status": "CLOSED", "updateReason": settings.close_update_reason}


async def test_close_with_empty_response_body():
    recorder = Recorder(httpx.Response(204))
    client = AccountClient(base_url=BASE_URL, transport=recorder.transport)

    account = await client.close_account(8)

    assert account.id == 8
    assert account.status is AccountStatus.CLOSED


async def test_http_error_carries_status_and_backend_message():
    recorder = Recorder(httpx.Response(400, json={"message": "account balance must be zero before closing"}))
    client = AccountClient(base_url=BASE_URL, transport=recorder.transport)

    with pytest.raises(BankAPIError) as exc_info:
        await client.close_account(1)

    assert exc_info.value.status_code == 400
    assert "balance must be zero" in str(exc_info.value)
    assert exc_info.value.is_definitive_rejection


@pytest.mark.parametrize("error", [httpx.ReadTimeout, httpx.ConnectError])
async def test_transport_failures_become_bank_errors(error):
    recorder = Recorder(error=error)
    client = AccountClient(base_url=BASE_URL, transport=recorder.transport)

    with pytest.raises(BankAPIError) as exc_info:
        await client.get_account(1)

    assert exc_info.value.status_code is None
    assert not exc_info.value.is_definitive_rejection


async def test_invalid_json_becomes_bank_error():
    recorder = Recorder(httpx.Response(200, content=b"<html>oops</html>"))
    client = AccountClient(base_url=BASE_URL, transport=recorder.transport)

    with pytest.raises(BankAPIError, match="Invalid JSON"):
        await client.get_account(1)


@pytest.mark.parametrize(
    "status,definitive",
    [(None, False), (400, True), (404, True), (409, True), (405, False), (408, False), (500, False), (503, False)],
)
def test_definitive_rejection_codes(status, definitive):
    assert BankAPIError("boom", status_code=status).is_definitive_rejection is definitive


async def test_transfer_payload():
    recorder = Recorder(httpx.Response(200, json={
        "id": 41, "type": "TRANSFER", "amount": 120000, "fromAccountId": 1, "toAccountId": 2, "status": "COMPLETED",
    }))
    client = TransferClient(base_url=BASE_URL, transport=recorder.transport)

    tx = await client.transfer(1, 2, 120000, "settlement")

    request = recorder.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/api/transactions/transfer"
    assert json.loads(request.content) == {
        "fromAccountId": 1, "toAccountId": 2, "amount": 120000, "description": "settlement",
    }
    assert tx.id == 41
    assert tx.status == "COMPLETED"


async def test_loan_repayment_transfer_is_tagged():
    recorder = Recorder(httpx.Response(200, json={"id": 42, "type": "LOAN_PAYMENT", "amount": 5}))
    client = TransferClient(base_url=BASE_URL, transport=recorder.transport)

    await client.transfer(2, 3, 5, "payoff", category=Category.LOAN_REPAYMENT)

    assert json.loads(recorder.requests[0].content)["transactionType"] == "LOAN_PAYMENT"


@pytest.mark.parametrize("source,target,amount", [(1, 2, 0), (1, 2, -10), (1, "1", 100)])
async def test_invalid_transfer_never_reaches_backend(source, target, amount):
    recorder = Recorder()
    client = TransferClient(base_url=BASE_URL, transport=recorder.transport)

    with pytest.raises(TransferValidationError):
        await client.transfer(source, target, amount, "bad")

    assert recorder.requests == []


async def test_history_page_request_and_metadata():
    recorder = Recorder(httpx.Response(200, json={
        "content": [{"id": 1, "type": "DEPOSIT", "amount": 100}],
        "number": 1,
        "size": 5,
        "totalPages": 3,
        "totalElements": 11,
    }))
    client = HistoryClient(base_url=BASE_URL, transport=recorder.transport)

    page = await client.list_transactions(1, HistoryFilter(page=1, size=5))

    params = recorder.requests[0].url.params
    assert recorder.requests[0].url.path == "/api/transactions/account/1"
    assert (params["page"], params["size"], params["sort"]) == ("1", "5", "transactionDate,desc")
    assert page.records == [{"id": 1, "type": "DEPOSIT", "amount": 100}]
    assert (page.page, page.total_pages, page.total_elements) == (1, 3, 11)
    assert page.has_more


async def test_history_bare_list_response():
    recorder = Recorder(httpx.Response(200, json=[{"id": 1}, {"id": 2}]))
    client = HistoryClient(base_url=BASE_URL, transport=recorder.transport)

    page = await client.list_transactions(1)

    assert len(page.records) == 2
    assert page.total_pages == 1
    assert not page.has_more
