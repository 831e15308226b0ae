"""
Pool Adapter - vault와 외부 풀 사이의 경계

vault는 이 인터페이스로만 풀 상태(포지션 유동성, 미수령 수수료, 현재 가격, TWAP)를
조회하고 mint / burn / collect / swap을 요청합니다.
mint와 swap 도중 풀은 호출자의 settlement 콜백을 동기적으로 호출해
빚진 토큰을 받아 갑니다.

References:
- Uniswap V3 Core: contracts/interfaces/IUniswapV3Pool.sol
- Uniswap V3 Core: contracts/interfaces/callback/IUniswapV3MintCallback.sol
- Uniswap V3 Core: contracts/interfaces/callback/IUniswapV3SwapCallback.sol
"""

from abc import ABC, abstractmethod
from typing import List, NamedTuple, Protocol, Tuple

from ..math.full_math import div_toward_zero


class Slot0(NamedTuple):
    """풀 현재 상태"""
    sqrt_price_x96: int
    tick: int


class PositionInfo(NamedTuple):
    """(owner, tick_lower, tick_upper)로 식별되는 포지션 상태"""
    liquidity: int
    tokens_owed0: int
    tokens_owed1: int


class SettlementContext(NamedTuple):
    """콜백 컨텍스트: 누가 풀에 토큰을 지불하는가"""
    payer: str


class SettlementCallbacks(Protocol):
    """mint / swap 호출자가 구현해야 하는 콜백"""

    address: str

    def on_mint_settle(self, amount0_owed: int, amount1_owed: int,
                       data: SettlementContext, sender: str) -> None:
        ...

    def on_swap_settle(self, amount0_delta: int, amount1_delta: int,
                       data: SettlementContext, sender: str) -> None:
        ...


class PoolAdapter(ABC):
    """집중 유동성 풀 인터페이스

    Attributes:
        address: 풀 주소 (콜백 호출자 검증에 사용)
        token0, token1: 정렬된 토큰 주소
        fee: 수수료 티어 (pips)
        tick_spacing: 틱 간격
    """

    address: str
    token0: str
    token1: str
    fee: int
    tick_spacing: int

    @abstractmethod
    def slot0(self) -> Slot0:
        """현재 sqrtPriceX96와 틱"""

    def current_price(self) -> int:
        """현재 sqrtPriceX96"""
        return self.slot0().sqrt_price_x96

    @abstractmethod
    def position_info(self, owner: str, tick_lower: int, tick_upper: int) -> PositionInfo:
        """포지션 유동성과 미수령 토큰 (없는 포지션은 0)"""

    @abstractmethod
    def mint(self, caller: SettlementCallbacks, tick_lower: int, tick_upper: int,
             liquidity: int, data: SettlementContext) -> Tuple[int, int]:
        """caller.address 소유 포지션에 유동성 추가, on_mint_settle로 정산"""

    @abstractmethod
    def burn(self, owner: str, tick_lower: int, tick_upper: int, liquidity: int) -> Tuple[int, int]:
        """유동성 제거. 반환량은 tokens owed에 적립되며 collect로 인출"""

    @abstractmethod
    def collect(self, owner: str, recipient: str, tick_lower: int, tick_upper: int,
                amount0_requested: int, amount1_requested: int) -> Tuple[int, int]:
        """적립된 tokens owed를 recipient에게 인출"""

    @abstractmethod
    def swap(self, caller: SettlementCallbacks, recipient: str, zero_for_one: bool,
             amount_specified: int, sqrt_price_limit_x96: int,
             data: SettlementContext) -> Tuple[int, int]:
        """스왑 실행, on_swap_settle로 입력 토큰 정산. (amount0, amount1) 반환 (양수: 풀 수취)"""

    @abstractmethod
    def observe(self, seconds_agos: List[int]) -> List[int]:
        """각 시점의 tick cumulative"""

    def observe_twap(self, window: int) -> int:
        """window초 동안의 시간가중평균 틱 (0 방향 절삭)"""
        if window <= 0:
            raise ValueError(f"TWAP 구간은 양수여야 합니다: {window}")
        tick_cumulatives = self.observe([window, 0])
        return div_toward_zero(tick_cumulatives[1] - tick_cumulatives[0], window)
