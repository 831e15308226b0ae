"""
API Request/Response Schemas using Pydantic

Defines data models for the vault API endpoints.
Token amounts and shares are raw integers (wei units).
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class HealthCheckResponse(BaseModel):
    """Response payload for GET /api/v1/health endpoint"""
    status: str = Field(..., description="Health status (healthy or unhealthy)")
    version: str = Field(..., description="API version")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Health check timestamp")

    class Config:
        json_schema_extra = {
            "example": {
                "status": "healthy",
                "version": "0.1.0",
                "timestamp": "2024-01-15T10:30:00Z"
            }
        }


class VaultStateResponse(BaseModel):
    """Response payload for GET /api/v1/vault endpoint"""
    address: str = Field(..., description="Vault address")
    pool: str = Field(..., description="Pool address")
    token0: str
    token1: str
    fee: int = Field(..., description="Pool fee tier (pips)")
    tick_spacing: int
    owner: str
    base_lower: int
    base_upper: int
    limit_lower: int
    limit_upper: int
    total_supply: int = Field(..., description="Total vault shares")
    total_amount0: int = Field(..., description="Idle + base + limit token0")
    total_amount1: int = Field(..., description="Idle + base + limit token1")
    current_tick: int = Field(..., description="TWAP tick used for deposit pricing")
    price: float = Field(..., description="Spot price of token0 in token1 (display only)")
    max_total_supply: int = Field(..., description="Share cap (0 = unlimited)")
    deposit0_max: int
    deposit1_max: int


class PositionResponse(BaseModel):
    """Liquidity of one vault range and its token value (including uncollected fees)"""
    lower: int
    upper: int
    liquidity: int
    amount0: int
    amount1: int


class PositionsResponse(BaseModel):
    """Response payload for GET /api/v1/vault/positions endpoint"""
    base: PositionResponse
    limit: PositionResponse


class DepositRequest(BaseModel):
    """Request payload for POST /api/v1/vault/deposit endpoint"""
    deposit0: int = Field(..., description="token0 amount", ge=0)
    deposit1: int = Field(..., description="token1 amount", ge=0)
    to: str = Field(..., description="Share recipient")
    sender: str = Field(..., description="Account paying the tokens (must approve the vault)")

    class Config:
        json_schema_extra = {
            "example": {
                "deposit0": 1000000000000000000,
                "deposit1": 1000000000000000000,
                "to": "alice",
                "sender": "alice"
            }
        }


class DepositResponse(BaseModel):
    status: str = "success"
    shares: int = Field(..., description="Shares minted")
    total_supply: int


class WithdrawRequest(BaseModel):
    """Request payload for POST /api/v1/vault/withdraw endpoint"""
    shares: int = Field(..., description="Shares to burn", gt=0)
    to: str = Field(..., description="Token recipient")
    from_account: str = Field(..., description="Share holder")
    sender: str = Field(..., description="Caller (holder or its resolved owner)")


class WithdrawResponse(BaseModel):
    status: str = "success"
    amount0: int
    amount1: int
    total_supply: int


class RebalanceRequest(BaseModel):
    """Request payload for POST /api/v1/vault/rebalance endpoint"""
    base_lower: int
    base_upper: int
    limit_lower: int
    limit_upper: int
    fee_recipient: str = Field(..., description="Receives floor(3/20) of harvested fees")
    swap_quantity: int = Field(
        default=0,
        description="> 0: sell token0, < 0: sell token1, 0: no swap (no slippage bound)"
    )
    sender: str

    class Config:
        json_schema_extra = {
            "example": {
                "base_lower": -600,
                "base_upper": 600,
                "limit_lower": 60,
                "limit_upper": 1200,
                "fee_recipient": "treasury",
                "swap_quantity": 0,
                "sender": "owner"
            }
        }


class RebalanceResponse(BaseModel):
    """Snapshot taken after fees are harvested and before liquidity is redeployed"""
    status: str = "success"
    tick: int
    total_amount0: int
    total_amount1: int
    fee_amount0: int
    fee_amount1: int
    total_supply: int


class DepositMaxRequest(BaseModel):
    deposit0_max: int = Field(..., ge=0)
    deposit1_max: int = Field(..., ge=0)
    sender: str


class MaxTotalSupplyRequest(BaseModel):
    max_total_supply: int = Field(..., description="0 = unlimited", ge=0)
    sender: str


class ErrorResponse(BaseModel):
    """Error response payload"""
    status: str = Field(default="error", description="Response status")
    message: str = Field(..., description="Error type")
    detail: Optional[str] = Field(None, description="Detailed error information")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Error timestamp")

    class Config:
        json_schema_extra = {
            "example": {
                "status": "error",
                "message": "DepositCapError",
                "detail": "deposit exceeds cap",
                "timestamp": "2024-01-15T10:30:00Z"
            }
        }
