"""
Hypervisor - Active Liquidity Management Vault

Uniswap V3 스타일 집중 유동성 풀 위에서 base / limit 두 범위를 관리하는 vault.
온체인 수준 정수 정밀도로 지분 회계, 리밸런스, 수수료 분배를 계산합니다.
"""

__version__ = "0.1.0"

from .constants import Q96, Q128, PRECISION, FEE_TIERS, TICK_SPACINGS
from .errors import HypervisorError
from .tokens import TokenLedger
from .pool import PoolAdapter, SimulatedPool, SettlementContext
from .vault import Hypervisor, ShareLedger
