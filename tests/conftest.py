"""Pytest fixtures for testing"""

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from mock_backend.main import create_bank_app
from pleasy_client.api.dependencies import get_account_client, get_history_client, get_transfer_client
from pleasy_client.api.main import create_app
from pleasy_client.domain.models import Account, AccountStatus, AccountType
from pleasy_client.infrastructure.clients.accounts import AccountClient
from pleasy_client.infrastructure.clients.history import HistoryClient
from pleasy_client.infrastructure.clients.transfers import TransferClient

BANK_URL = "http://bank.test"


@pytest.fixture
def checking() -> Account:
    return Account(id=1, account_type=AccountType.CHECKING, stored_balance=120000, account_number="1111")


@pytest.fixture
def savings() -> Account:
    return Account(id=2, account_type=AccountType.SAVINGS, stored_balance=5000000, account_number="2222")


@pytest.fixture
def loan() -> Account:
    """Loan with 3,000,000 still owed"""
    return Account(id=3, account_type=AccountType.LOAN, stored_balance=-3000000, account_number="3333")


@pytest.fixture
def closed_savings() -> Account:
    return Account(id=4, account_type=AccountType.SAVINGS, stored_balance=0, status=AccountStatus.CLOSED)


@pytest.fixture
def bank_app() -> FastAPI:
    """Fresh in-memory banking backend with the default seed accounts"""
    return create_bank_app()


def gateway_for(bank: FastAPI) -> TestClient:
    """Gateway test client whose backend clients talk to the given mock bank"""
    transport = httpx.ASGITransport(app=bank)
    app = create_app()
    app.dependency_overrides[get_account_client] = lambda: AccountClient(base_url=BANK_URL, transport=transport)
    app.dependency_overrides[get_transfer_client] = lambda: TransferClient(base_url=BANK_URL, transport=transport)
    app.dependency_overrides[get_history_client] = lambda: HistoryClient(base_url=BANK_URL, transport=transport)
    return TestClient(app)


@pytest.fixture
def client(bank_app: FastAPI) -> TestClient:
    """Create FastAPI test client wired to the mock banking backend"""
    return gateway_for(bank_app)


@pytest.fixture
def make_gateway():
    """Factory for gateway clients bound to a custom mock bank"""
    return gateway_for
