"""In-memory banking backend speaking the same wire shapes as the real one"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import Body, FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse

SEED_ACCOUNTS = [
    {"id": 1, "accountNumber": "1234567890123456", "accountType": "CHECKING", "balance": 1250000},
    {"id": 2, "accountNumber": "2234567890123456", "accountType": "SAVINGS", "balance": 5000000},
    # Reported positive, the way the loan endpoint does it
    {"id": 3, "accountNumber": "3234567890123456", "accountType": "LOAN", "balance": 10000000},
]


@dataclass
class BankState:
    accounts: Dict[int, dict] = field(default_factory=dict)
    transactions: List[dict] = field(default_factory=list)
    patch_supported: bool = True
    fail_transfers: bool = False
    close_calls: List[str] = field(default_factory=list)

    def account(self, account_id: int) -> dict:
        account = self.accounts.get(account_id)
        if account is None:
            raise HTTPException(status_code=404, detail="account not found")
        return account


def _error(status: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"message": message})


def create_bank_app(accounts: Optional[List[dict]] = None, patch_supported: bool = True) -> FastAPI:
    app = FastAPI(title="Mock Bank Server", version="1.0.0")
    state = BankState(patch_supported=patch_supported)
    for seed in accounts if accounts is not None else SEED_ACCOUNTS:
        record = {"currency": "KRW", "status": "ACTIVE", **seed}
        state.accounts[record["id"]] = record
    app.state.bank = state

    @app.get("/health")
    def health(): return {"status": "ok"}

    @app.get("/api/accounts/my")
    def my_accounts():
        return {"content": list(state.accounts.values()), "totalPages": 1, "number": 0}

    @app.get("/api/accounts/{account_id}")
    def get_account(account_id: int):
        return state.account(account_id)

    @app.patch("/api/accounts/{account_id}/close")
    def close_patch(account_id: int):
        state.close_calls.append("PATCH")
        if not state.patch_supported:
            return _error(405, "Request method 'PATCH' is not supported")
        return _close(account_id)

    @app.put("/api/accounts/{account_id}/close")
    def close_put(account_id: int, body: Optional[dict] = Body(None)):
        state.close_calls.append("PUT")
        if (body or {}).get("status") != "CLOSED":
            return _error(400, "status must be CLOSED")
        return _close(account_id)

    def _close(account_id: int):
        account = state.account(account_id)
        if account["status"] == "CLOSED":
            return _error(400, "account already closed")
        if account["balance"] != 0:
            return _error(400, "account balance must be zero before closing")
        account["status"] = "CLOSED"
        return account

    @app.post("/api/transactions/transfer")
    def transfer(body: dict = Body(...)):
        if state.fail_transfers:
            return _error(503, "transfer service unavailable")
        source = state.account(int(body["fromAccountId"]))
        target = state.account(int(body["toAccountId"]))
        amount = int(body["amount"])
        if source["status"] != "ACTIVE" or target["status"] != "ACTIVE":
            return _error(400, "inactive account")
        if source["accountType"] == "LOAN":
            return _error(400, "loan accounts cannot send transfers")
        if source["balance"] < amount:
            return _error(400, "insufficient balance")

        if target["accountType"] == "LOAN":
            if amount > target["balance"]:
                return _error(400, "repayment exceeds outstanding debt")
            target["balance"] -= amount
        else:
            target["balance"] += amount
        source["balance"] -= amount

        record = {
            "id": len(state.transactions) + 1,
            "type": body.get("transactionType") or "TRANSFER",
            "amount": amount,
            "fromAccountId": source["id"],
            "fromAccountNumber": source["accountNumber"],
            "toAccountId": target["id"],
            "toAccountNumber": target["accountNumber"],
            "description": body.get("description", ""),
            "status": "COMPLETED",
            "transactionDatetime": datetime.now().isoformat(timespec="seconds"),
            "counterpartyAccountType": target["accountType"],
        }
        state.transactions.append(record)
        return record

    @app.get("/api/transactions/account/{account_id}")
    def account_transactions(
        account_id: int,
        page: int = Query(0, ge=0),
        size: int = Query(10, ge=1),
        sort: str = Query("transactionDate,desc"),
    ):
        state.account(account_id)
        rows = [
            t for t in reversed(state.transactions)
            if account_id in (t.get("fromAccountId"), t.get("toAccountId"))
        ]
        total_pages = max(1, -(-len(rows) // size))
        return {
            "content": rows[page * size:(page + 1) * size],
            "number": page,
            "size": size,
            "totalPages": total_pages,
            "totalElements": len(rows),
        }

    return app


app = create_bank_app()
