"""Account settlement endpoints - clear the balance, then close the account"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from pleasy_client.api.dependencies import get_orchestrator, get_request_id
from pleasy_client.api.v1.schemas import CounterpartRequest, SettlementResponse
from pleasy_client.config import settings
from pleasy_client.domain.exceptions import BankAPIError, SettlementInProgressError, SettlementStateError
from pleasy_client.domain.settlement import SettlementOrchestrator

router = APIRouter()


@router.post("/accounts/{account_id}/settlement", response_model=SettlementResponse)
async def start_settlement(
    account_id: int,
    request: Request,
    orchestrator: SettlementOrchestrator = Depends(get_orchestrator),
):
    """
    Start closing an account.

    Returns AWAITING_COUNTERPART with the eligible accounts when a balance
    must be cleared first; a zero-balance account is closed right away.
    Failures that stop the workflow come back as phase FAILED with a reason.
    """
    request_id = get_request_id(request)
    try:
        workflow = await orchestrator.start(account_id, request_id=request_id)
    except SettlementInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except SettlementStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except BankAPIError as e:
        logging.error(f"Settlement lookup failed: {e}", extra={"request_id": request_id})
        if e.status_code == 404:
            raise HTTPException(status_code=404, detail="Account not found")
        raise HTTPException(status_code=503, detail="Banking service unavailable")

    return SettlementResponse.from_state(workflow.state, settings.display_locale)


@router.post("/accounts/{account_id}/settlement/counterpart", response_model=SettlementResponse)
async def select_settlement_counterpart(
    account_id: int,
    body: CounterpartRequest,
    request: Request,
    orchestrator: SettlementOrchestrator = Depends(get_orchestrator),
):
    """Pick the counterpart account and run clearing and close to completion"""
    request_id = get_request_id(request)
    try:
        workflow = await orchestrator.select_counterpart(account_id, body.counterpart_account_id)
    except SettlementStateError as e:
        logging.warning(f"Counterpart rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail=str(e))

    return SettlementResponse.from_state(workflow.state, settings.display_locale)


@router.delete("/accounts/{account_id}/settlement", response_model=SettlementResponse)
async def cancel_settlement(
    account_id: int,
    orchestrator: SettlementOrchestrator = Depends(get_orchestrator),
):
    """Cancel a settlement that has not moved any funds yet"""
    try:
        workflow = orchestrator.cancel(account_id)
    except SettlementStateError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return SettlementResponse.from_state(workflow.state, settings.display_locale)
