"""
Vault Endpoints

Exposes the vault's public operations: state queries, deposit, withdraw,
rebalance and the owner setters. Vault errors are translated to HTTP
status codes by the handler registered in app.main.
"""
from fastapi import APIRouter, Depends

from hypervisor.math.sqrt_price_math import sqrt_price_x96_to_price
from hypervisor.vault.hypervisor import TickRange

from app.api.schemas import (
    DepositMaxRequest,
    DepositRequest,
    DepositResponse,
    MaxTotalSupplyRequest,
    PositionResponse,
    PositionsResponse,
    RebalanceRequest,
    RebalanceResponse,
    VaultStateResponse,
    WithdrawRequest,
    WithdrawResponse,
)
from app.core.registry import VaultRegistry, get_registry

router = APIRouter()


def _position(tick_range: TickRange, amounts) -> PositionResponse:
    return PositionResponse(
        lower=tick_range.lower,
        upper=tick_range.upper,
        liquidity=amounts.liquidity,
        amount0=amounts.amount0,
        amount1=amounts.amount1
    )


def _state(registry: VaultRegistry) -> VaultStateResponse:
    vault = registry.vault
    total0, total1 = vault.get_total_amounts()
    return VaultStateResponse(
        address=vault.address,
        pool=vault.pool.address,
        token0=vault.token0,
        token1=vault.token1,
        fee=vault.fee,
        tick_spacing=vault.tick_spacing,
        owner=vault.owner,
        base_lower=vault.base_lower,
        base_upper=vault.base_upper,
        limit_lower=vault.limit_lower,
        limit_upper=vault.limit_upper,
        total_supply=vault.total_supply,
        total_amount0=total0,
        total_amount1=total1,
        current_tick=vault.current_tick(),
        price=sqrt_price_x96_to_price(vault.pool.current_price()),
        max_total_supply=vault.max_total_supply,
        deposit0_max=vault.deposit0_max,
        deposit1_max=vault.deposit1_max
    )


@router.get("/vault", response_model=VaultStateResponse)
async def get_vault(registry: VaultRegistry = Depends(get_registry)):
    """Vault configuration, ranges, caps and total holdings"""
    return _state(registry)


@router.get("/vault/positions", response_model=PositionsResponse)
async def get_positions(registry: VaultRegistry = Depends(get_registry)):
    """Base and limit position liquidity with token amounts (uncollected fees included)"""
    vault = registry.vault
    return PositionsResponse(
        base=_position(vault.base_range, vault.get_base_position()),
        limit=_position(vault.limit_range, vault.get_limit_position())
    )


@router.post("/vault/deposit", response_model=DepositResponse)
async def deposit(request: DepositRequest, registry: VaultRegistry = Depends(get_registry)):
    """
    Deposit token0 / token1 and mint shares

    The sender must have approved the vault for both tokens.
    """
    shares = registry.vault.deposit(request.deposit0, request.deposit1, request.to, request.sender)
    return DepositResponse(shares=shares, total_supply=registry.vault.total_supply)


@router.post("/vault/withdraw", response_model=WithdrawResponse)
async def withdraw(request: WithdrawRequest, registry: VaultRegistry = Depends(get_registry)):
    """Burn shares and receive the proportional share of every position and idle balance"""
    amount0, amount1 = registry.vault.withdraw(
        request.shares, request.to, request.from_account, request.sender
    )
    return WithdrawResponse(amount0=amount0, amount1=amount1, total_supply=registry.vault.total_supply)


@router.post("/vault/rebalance", response_model=RebalanceResponse)
async def rebalance(request: RebalanceRequest, registry: VaultRegistry = Depends(get_registry)):
    """
    Rebalance into new base / limit ranges (owner only)

    Flow:
    1. Harvest fees and withdraw all liquidity
    2. Pay the fee recipient its cut
    3. Optionally swap swap_quantity (no slippage bound)
    4. Deploy the base range, then the limit range with what is left
    """
    event = registry.vault.rebalance(
        request.base_lower,
        request.base_upper,
        request.limit_lower,
        request.limit_upper,
        request.fee_recipient,
        request.swap_quantity,
        request.sender
    )
    return RebalanceResponse(
        tick=event.tick,
        total_amount0=event.total_amount0,
        total_amount1=event.total_amount1,
        fee_amount0=event.fee_amount0,
        fee_amount1=event.fee_amount1,
        total_supply=event.total_supply
    )


@router.post("/vault/deposit-max", response_model=VaultStateResponse)
async def set_deposit_max(request: DepositMaxRequest, registry: VaultRegistry = Depends(get_registry)):
    registry.vault.set_deposit_max(request.deposit0_max, request.deposit1_max, request.sender)
    return _state(registry)


@router.post("/vault/max-total-supply", response_model=VaultStateResponse)
async def set_max_total_supply(request: MaxTotalSupplyRequest, registry: VaultRegistry = Depends(get_registry)):
    registry.vault.set_max_total_supply(request.max_total_supply, request.sender)
    return _state(registry)
