"""
ATM Ledger HTTP API

Exposes the ATM commands over HTTP. There is one process-wide session, the
same as at the interactive shell.
"""

from decimal import Decimal
from typing import List, Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .system import AtmSystem
from .money import parse_amount
from .exceptions import AtmError, InvalidAmount, NotLoggedIn, TargetUserNotFound
from .settlement import DebtEntry
from .config import get_config
from .logging_config import get_logger
from . import formatting


logger = get_logger("atm_ledger.api")


class LoginRequest(BaseModel):
    name: str = Field(..., description="Account name; created on first login")


class AmountRequest(BaseModel):
    amount: str = Field(..., description="Decimal amount as string")

    def to_decimal(self, message: Optional[str] = None) -> Decimal:
        try:
            return parse_amount(self.amount)
        except InvalidAmount:
            raise InvalidAmount(message)


class TransferRequest(AmountRequest):
    target: str = Field(..., description="Name of an existing account")


class DebtModel(BaseModel):
    index: int
    creditor: str
    amount: str

    @classmethod
    def from_entry(cls, entry: DebtEntry) -> 'DebtModel':
        return cls(index=entry.index, creditor=entry.creditor, amount=str(entry.amount))


def _debt_models(entries: List[DebtEntry]) -> List[dict]:
    return [DebtModel.from_entry(e).model_dump() for e in entries]


# Global ATM system instance
atm_system = AtmSystem()


def get_atm_system() -> AtmSystem:
    return atm_system


router = APIRouter()


@router.post("/login")
async def login(request: LoginRequest, system: AtmSystem = Depends(get_atm_system)):
    """Select or create an account and make it the active one"""
    account, is_new = system.session.login(request.name)
    summary = system.engine.login_summary(account, is_new)
    return {
        "message": formatting.render_login(summary),
        "account": summary.account,
        "new_account": summary.is_new,
        "balance": str(summary.balance),
        "owed_by": _debt_models(summary.owed_by),
        "owed_to": [{"debtor": r.debtor, "amount": str(r.amount)} for r in summary.owed_to]
    }


@router.post("/logout")
async def logout(system: AtmSystem = Depends(get_atm_system)):
    """End the current session"""
    account = system.session.logout()
    if account is None:
        raise NotLoggedIn("No user logged in!")
    return {"message": formatting.render_logout(account.name), "account": account.name}


@router.post("/deposit")
async def deposit(request: AmountRequest, system: AtmSystem = Depends(get_atm_system)):
    """Deposit cash, settling outstanding debts first"""
    system.session.require()
    result = system.engine.deposit(system.session, request.to_decimal())
    return {
        "message": formatting.render_deposit(result),
        "account": result.account,
        "balance": str(result.balance),
        "payments": [{"creditor": p.target, "amount": str(p.amount)} for p in result.payments],
        "debts": _debt_models(result.remaining_debts)
    }


@router.post("/withdraw")
async def withdraw(request: AmountRequest, system: AtmSystem = Depends(get_atm_system)):
    """Withdraw cash from the balance"""
    system.session.require()
    result = system.engine.withdraw(system.session, request.to_decimal())
    return {
        "message": formatting.render_withdraw(result),
        "account": result.account,
        "balance": str(result.balance)
    }


@router.post("/transfer")
async def transfer(request: TransferRequest, system: AtmSystem = Depends(get_atm_system)):
    """Transfer money to another existing account"""
    system.session.require()
    result = system.engine.transfer(
        system.session, request.target, request.to_decimal("Invalid transfer amount!")
    )
    return {
        "message": formatting.render_transfer(result),
        "sender": result.sender,
        "recipient": result.recipient,
        "balance": str(result.balance),
        "netted": str(result.netted),
        "transferred": str(result.transferred),
        "new_debt": str(result.new_debt) if result.new_debt is not None else None
    }


@router.get("/debts")
async def debts(system: AtmSystem = Depends(get_atm_system)):
    """List the active account's debts in repayment order"""
    listing = system.engine.debts(system.session)
    return {
        "message": formatting.render_debts(listing),
        "account": listing.account,
        "debts": _debt_models(listing.entries)
    }


@router.get("/audit/verify")
async def verify_audit(system: AtmSystem = Depends(get_atm_system)):
    """Check the audit trail's hash chain"""
    return system.audit_trail.verify_integrity()


def _status_for(error: AtmError) -> int:
    if isinstance(error, NotLoggedIn):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(error, TargetUserNotFound):
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_400_BAD_REQUEST


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title="ATM Ledger API",
        description="Single-branch ATM with automatic debt tracking and settlement",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc"
    )

    @app.exception_handler(AtmError)
    async def atm_error_handler(request: Request, exc: AtmError):
        return JSONResponse(status_code=_status_for(exc), content={"detail": exc.message})

    app.include_router(router, tags=["ATM"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "atm_ledger_api",
            "version": "1.0.0"
        }

    return app


app = create_app()


def run_server(host: Optional[str] = None, port: Optional[int] = None):
    """Run the API with uvicorn"""
    config = get_config()
    host = host or config.api_host
    port = port or config.api_port
    logger.info(f"Starting ATM ledger API on {host}:{port}")
    uvicorn.run(app, host=host, port=port, access_log=False)
