"""Dependency injection for FastAPI endpoints"""

from typing import Optional

from fastapi import Depends, Request

from pleasy_client.domain.settlement import SettlementOrchestrator, SettlementRegistry
from pleasy_client.infrastructure.clients.accounts import AccountClient
from pleasy_client.infrastructure.clients.history import HistoryClient
from pleasy_client.infrastructure.clients.transfers import TransferClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_bearer_token(request: Request) -> Optional[str]:
    """Caller's bearer token, forwarded to the backend untouched"""
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token:
        return token.strip()
    return None


def get_account_client(token: Optional[str] = Depends(get_bearer_token)) -> AccountClient:
    """Provide account API client instance"""
    return AccountClient(token=token)


def get_transfer_client(token: Optional[str] = Depends(get_bearer_token)) -> TransferClient:
    """Provide transfer API client instance"""
    return TransferClient(token=token)


def get_history_client(token: Optional[str] = Depends(get_bearer_token)) -> HistoryClient:
    """Provide history API client instance"""
    return HistoryClient(token=token)


def get_settlement_registry(request: Request) -> SettlementRegistry:
    """Process-wide registry of in-flight settlements"""
    return request.app.state.settlement_registry


def get_orchestrator(
    accounts: AccountClient = Depends(get_account_client),
    transfers: TransferClient = Depends(get_transfer_client),
    registry: SettlementRegistry = Depends(get_settlement_registry),
) -> SettlementOrchestrator:
    return SettlementOrchestrator(accounts, transfers, registry)
