"""
Simulated Pool - 메모리 내 Uniswap V3 스타일 풀

PoolAdapter의 참조 구현. vault를 실제 체인 없이 끝까지 실행하기 위한
외부 협력자로, 다음을 온체인과 같은 정수 연산으로 재현합니다:
- 틱별 liquidityGross / liquidityNet / feeGrowthOutside
- 포지션별 feeGrowthInsideLast / tokensOwed
- 초기화된 틱을 넘나드는 스왑과 전역 fee growth 누적
- TWAP 조회를 위한 tick cumulative 관측 기록

토큰 잔고는 공유 TokenLedger에 풀 주소로 보관됩니다.
프로토콜 수수료, 플래시 론, 틱당 최대 유동성 제한은 구현하지 않습니다.

References:
- Uniswap V3 Core: contracts/UniswapV3Pool.sol
- Uniswap V3 Core: contracts/libraries/Tick.sol, Position.sol, Oracle.sol
"""

import logging
from bisect import bisect_left, bisect_right, insort
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple

from ..constants import Q128, MIN_TICK, MAX_TICK, TICK_SPACINGS, UINT128_MAX
from ..errors import IdenticalTokensError, PoolError
from ..math.fee_math import fee_growth_inside, calculate_uncollected_fees
from ..math.full_math import mul_div, div_toward_zero
from ..math.liquidity_math import get_amount0_delta, get_amount1_delta
from ..math.swap_math import compute_swap_step
from ..math.tick_math import (
    MIN_SQRT_RATIO,
    MAX_SQRT_RATIO,
    get_sqrt_ratio_at_tick,
    get_tick_at_sqrt_ratio,
)
from ..tokens import TokenLedger
from ..transaction import Checkpointable, atomic
from .adapter import PoolAdapter, PositionInfo, SettlementCallbacks, SettlementContext, Slot0

logger = logging.getLogger(__name__)


@dataclass
class TickInfo:
    """Tick-Indexed State (백서 Section 6.3)"""
    liquidity_gross: int = 0
    liquidity_net: int = 0
    fee_growth_outside0_x128: int = 0
    fee_growth_outside1_x128: int = 0


@dataclass
class Position:
    """Position-Indexed State (백서 Section 6.4)"""
    liquidity: int = 0
    fee_growth_inside0_last_x128: int = 0
    fee_growth_inside1_last_x128: int = 0
    tokens_owed0: int = 0
    tokens_owed1: int = 0


class Observation(NamedTuple):
    """오라클 관측값"""
    timestamp: int
    tick_cumulative: int


class SimulatedPool(PoolAdapter, Checkpointable):
    """메모리 내 집중 유동성 풀

    mint / swap은 전달된 caller를 호출자로 신뢰하고 그 객체의 콜백으로 정산합니다.
    온체인의 msg.sender와 달리 호출자 신원을 검증하지 않으므로, 누구든
    pool.mint(vault, ..., SettlementContext(alice))처럼 vault를 caller로 넘겨
    alice가 vault에 준 허용량을 소비시킬 수 있습니다. 이 풀은 신뢰된 환경의
    참조 구현으로만 사용합니다.

    mint / swap 도중 예외(정산 실패 M0 / M1 / IIA 포함)가 발생하면 풀 상태와
    토큰 원장을 호출 전으로 되돌립니다.

    사용법:
        ledger = TokenLedger()
        pool = SimulatedPool(ledger, "0xaaa...", "0xbbb...", fee=3000,
                             sqrt_price_x96=encode_price_sqrt(1, 1))
        pool.advance_time(3600)
    """

    _checkpoint_fields = (
        "sqrt_price_x96",
        "tick",
        "liquidity",
        "fee_growth_global0_x128",
        "fee_growth_global1_x128",
        "ticks",
        "_initialized_ticks",
        "positions",
        "observations",
    )

    def __init__(
        self,
        ledger: TokenLedger,
        token0: str,
        token1: str,
        fee: int,
        sqrt_price_x96: int,
        address: Optional[str] = None,
        tick_spacing: Optional[int] = None,
        timestamp: int = 0
    ):
        """
        Args:
            ledger: 토큰 잔고 원장
            token0: 정렬된 토큰 주소 (token0 < token1)
            token1: 정렬된 토큰 주소
            fee: 수수료 티어 (pips)
            sqrt_price_x96: 초기 sqrtPriceX96
            address: 풀 주소. None이면 토큰/수수료로 생성
            tick_spacing: 틱 간격. None이면 수수료 티어에서 결정
            timestamp: 초기 시각 (초)
        """
        if token0 == token1:
            raise IdenticalTokensError(f"token0와 token1이 같습니다: {token0}")
        if token0.lower() > token1.lower():
            raise ValueError(f"토큰이 정렬되지 않았습니다: {token0} > {token1}")
        if tick_spacing is None:
            if fee not in TICK_SPACINGS:
                raise ValueError(f"지원하지 않는 수수료 티어: {fee}")
            tick_spacing = TICK_SPACINGS[fee]

        self.ledger = ledger
        self.token0 = token0
        self.token1 = token1
        self.fee = fee
        self.tick_spacing = tick_spacing
        self.address = address or f"pool:{token0}:{token1}:{fee}"

        self.sqrt_price_x96 = sqrt_price_x96
        self.tick = get_tick_at_sqrt_ratio(sqrt_price_x96)
        self.liquidity = 0
        self.fee_growth_global0_x128 = 0
        self.fee_growth_global1_x128 = 0

        self.ticks: Dict[int, TickInfo] = {}
        self._initialized_ticks: List[int] = []
        self.positions: Dict[Tuple[str, int, int], Position] = {}

        self.timestamp = timestamp
        self.observations: List[Observation] = [Observation(timestamp, 0)]
        self._unlocked = True

    # ------------------------------------------------------------------
    # 조회
    # ------------------------------------------------------------------

    def slot0(self) -> Slot0:
        return Slot0(self.sqrt_price_x96, self.tick)

    def position_info(self, owner: str, tick_lower: int, tick_upper: int) -> PositionInfo:
        position = self.positions.get((owner, tick_lower, tick_upper))
        if position is None:
            return PositionInfo(0, 0, 0)
        return PositionInfo(position.liquidity, position.tokens_owed0, position.tokens_owed1)

    def tick_info(self, tick: int) -> TickInfo:
        return self.ticks.get(tick, TickInfo())

    def balances(self) -> Tuple[int, int]:
        return (
            self.ledger.balance_of(self.token0, self.address),
            self.ledger.balance_of(self.token1, self.address),
        )

    # ------------------------------------------------------------------
    # 오라클
    # ------------------------------------------------------------------

    def advance_time(self, seconds: int) -> None:
        """풀 시계를 앞으로 이동"""
        if seconds < 0:
            raise ValueError(f"시간은 되돌릴 수 없습니다: {seconds}")
        self.timestamp += seconds

    def _write_observation(self) -> None:
        last = self.observations[-1]
        if last.timestamp == self.timestamp:
            return
        self.observations.append(Observation(
            self.timestamp,
            last.tick_cumulative + self.tick * (self.timestamp - last.timestamp)
        ))

    def _observe_single(self, seconds_ago: int) -> int:
        target = self.timestamp - seconds_ago
        last = self.observations[-1]
        if target >= last.timestamp:
            return last.tick_cumulative + self.tick * (target - last.timestamp)

        if target < self.observations[0].timestamp:
            raise PoolError("OLD", f"관측 기록보다 이전 시점입니다: {seconds_ago}초 전")

        timestamps = [o.timestamp for o in self.observations]
        idx = bisect_right(timestamps, target) - 1
        before = self.observations[idx]
        if before.timestamp == target:
            return before.tick_cumulative
        after = self.observations[idx + 1]
        return before.tick_cumulative + div_toward_zero(
            after.tick_cumulative - before.tick_cumulative,
            after.timestamp - before.timestamp
        ) * (target - before.timestamp)

    def observe(self, seconds_agos: List[int]) -> List[int]:
        return [self._observe_single(seconds_ago) for seconds_ago in seconds_agos]

    # ------------------------------------------------------------------
    # 내부 상태 갱신
    # ------------------------------------------------------------------

    @contextmanager
    def _lock(self) -> Iterator[None]:
        if not self._unlocked:
            raise PoolError("LOK", "풀이 잠겨 있습니다")
        self._unlocked = False
        try:
            yield
        finally:
            self._unlocked = True

    def _check_ticks(self, tick_lower: int, tick_upper: int) -> None:
        if tick_lower >= tick_upper:
            raise PoolError("TLU", f"[{tick_lower}, {tick_upper}]")
        if tick_lower < MIN_TICK:
            raise PoolError("TLM", f"{tick_lower}")
        if tick_upper > MAX_TICK:
            raise PoolError("TUM", f"{tick_upper}")
        if tick_lower % self.tick_spacing != 0 or tick_upper % self.tick_spacing != 0:
            raise PoolError("TS", f"[{tick_lower}, {tick_upper}] / spacing {self.tick_spacing}")

    def _update_tick(self, tick: int, liquidity_delta: int, upper: bool) -> None:
        info = self.ticks.get(tick) or TickInfo()
        gross_before = info.liquidity_gross
        gross_after = gross_before + liquidity_delta

        if gross_before == 0 and tick <= self.tick:
            # 현재 틱 아래에서 초기화된 틱은 지금까지의 수수료가 모두 "아래"에서 발생했다고 본다
            info.fee_growth_outside0_x128 = self.fee_growth_global0_x128
            info.fee_growth_outside1_x128 = self.fee_growth_global1_x128

        info.liquidity_gross = gross_after
        if upper:
            info.liquidity_net -= liquidity_delta
        else:
            info.liquidity_net += liquidity_delta

        if gross_before == 0 and gross_after > 0:
            insort(self._initialized_ticks, tick)
        self.ticks[tick] = info

    def _clear_tick_if_empty(self, tick: int) -> None:
        info = self.ticks.get(tick)
        if info is not None and info.liquidity_gross == 0:
            del self.ticks[tick]
            idx = bisect_left(self._initialized_ticks, tick)
            if idx < len(self._initialized_ticks) and self._initialized_ticks[idx] == tick:
                self._initialized_ticks.pop(idx)

    def _fee_growth_inside(self, tick_lower: int, tick_upper: int) -> Tuple[int, int]:
        lower = self.tick_info(tick_lower)
        upper = self.tick_info(tick_upper)
        inside0 = fee_growth_inside(
            tick_lower, tick_upper, self.tick, self.fee_growth_global0_x128,
            lower.fee_growth_outside0_x128, upper.fee_growth_outside0_x128
        )
        inside1 = fee_growth_inside(
            tick_lower, tick_upper, self.tick, self.fee_growth_global1_x128,
            lower.fee_growth_outside1_x128, upper.fee_growth_outside1_x128
        )
        return inside0, inside1

    def _update_position(self, owner: str, tick_lower: int, tick_upper: int,
                         liquidity_delta: int) -> Position:
        key = (owner, tick_lower, tick_upper)
        position = self.positions.get(key) or Position()

        if liquidity_delta == 0 and position.liquidity == 0:
            raise PoolError("NP", "유동성이 없는 포지션은 poke할 수 없습니다")
        if position.liquidity + liquidity_delta < 0:
            raise PoolError("LS", f"포지션 유동성 {position.liquidity} < 소각 {-liquidity_delta}")
        if position.liquidity + liquidity_delta > UINT128_MAX:
            raise PoolError("LA", "포지션 유동성이 uint128을 넘습니다")

        if liquidity_delta != 0:
            self._update_tick(tick_lower, liquidity_delta, upper=False)
            self._update_tick(tick_upper, liquidity_delta, upper=True)

        inside0, inside1 = self._fee_growth_inside(tick_lower, tick_upper)
        position.tokens_owed0 += calculate_uncollected_fees(
            position.liquidity, inside0, position.fee_growth_inside0_last_x128
        )
        position.tokens_owed1 += calculate_uncollected_fees(
            position.liquidity, inside1, position.fee_growth_inside1_last_x128
        )
        position.fee_growth_inside0_last_x128 = inside0
        position.fee_growth_inside1_last_x128 = inside1
        position.liquidity += liquidity_delta
        self.positions[key] = position

        if liquidity_delta < 0:
            self._clear_tick_if_empty(tick_lower)
            self._clear_tick_if_empty(tick_upper)
        return position

    def _modify_position(self, owner: str, tick_lower: int, tick_upper: int,
                         liquidity_delta: int) -> Tuple[Position, int, int]:
        """포지션 변경 후 (position, amount0, amount1) 반환

        amount 양수: 풀이 받아야 할 금액(올림), 음수: 풀이 돌려줄 금액(내림)
        """
        self._check_ticks(tick_lower, tick_upper)
        position = self._update_position(owner, tick_lower, tick_upper, liquidity_delta)

        amount0 = amount1 = 0
        if liquidity_delta != 0:
            sqrt_lower = get_sqrt_ratio_at_tick(tick_lower)
            sqrt_upper = get_sqrt_ratio_at_tick(tick_upper)
            round_up = liquidity_delta > 0
            abs_delta = abs(liquidity_delta)

            if self.tick < tick_lower:
                amount0 = get_amount0_delta(sqrt_lower, sqrt_upper, abs_delta, round_up)
            elif self.tick < tick_upper:
                self._write_observation()
                amount0 = get_amount0_delta(self.sqrt_price_x96, sqrt_upper, abs_delta, round_up)
                amount1 = get_amount1_delta(sqrt_lower, self.sqrt_price_x96, abs_delta, round_up)
                self.liquidity += liquidity_delta
            else:
                amount1 = get_amount1_delta(sqrt_lower, sqrt_upper, abs_delta, round_up)

            if liquidity_delta < 0:
                amount0, amount1 = -amount0, -amount1

        return position, amount0, amount1

    # ------------------------------------------------------------------
    # 유동성
    # ------------------------------------------------------------------

    def mint(self, caller: SettlementCallbacks, tick_lower: int, tick_upper: int,
             liquidity: int, data: SettlementContext) -> Tuple[int, int]:
        if liquidity <= 0:
            raise PoolError("M", f"민트 유동성은 양수여야 합니다: {liquidity}")

        with self._lock(), atomic(self, self.ledger):
            _, amount0, amount1 = self._modify_position(caller.address, tick_lower, tick_upper, liquidity)

            balance0_before, balance1_before = self.balances()
            caller.on_mint_settle(amount0, amount1, data, self.address)
            balance0_after, balance1_after = self.balances()

            if amount0 > 0 and balance0_before + amount0 > balance0_after:
                raise PoolError("M0", f"token0 {amount0} 미지급")
            if amount1 > 0 and balance1_before + amount1 > balance1_after:
                raise PoolError("M1", f"token1 {amount1} 미지급")

        logger.debug("mint %s [%d, %d] L=%d -> (%d, %d)",
                     caller.address, tick_lower, tick_upper, liquidity, amount0, amount1)
        return amount0, amount1

    def burn(self, owner: str, tick_lower: int, tick_upper: int, liquidity: int) -> Tuple[int, int]:
        if liquidity < 0:
            raise PoolError("B", f"소각 유동성은 음수일 수 없습니다: {liquidity}")

        with self._lock():
            position, amount0, amount1 = self._modify_position(owner, tick_lower, tick_upper, -liquidity)
            amount0, amount1 = -amount0, -amount1
            position.tokens_owed0 += amount0
            position.tokens_owed1 += amount1

        return amount0, amount1

    def collect(self, owner: str, recipient: str, tick_lower: int, tick_upper: int,
                amount0_requested: int, amount1_requested: int) -> Tuple[int, int]:
        with self._lock():
            position = self.positions.get((owner, tick_lower, tick_upper))
            if position is None:
                return 0, 0

            amount0 = min(amount0_requested, position.tokens_owed0)
            amount1 = min(amount1_requested, position.tokens_owed1)

            if amount0 > 0:
                position.tokens_owed0 -= amount0
                self.ledger.transfer(self.token0, self.address, recipient, amount0)
            if amount1 > 0:
                position.tokens_owed1 -= amount1
                self.ledger.transfer(self.token1, self.address, recipient, amount1)

        return amount0, amount1

    # ------------------------------------------------------------------
    # 스왑
    # ------------------------------------------------------------------

    def _next_initialized_tick(self, tick: int, lte: bool) -> Tuple[int, bool]:
        if lte:
            idx = bisect_right(self._initialized_ticks, tick) - 1
            if idx >= 0:
                return self._initialized_ticks[idx], True
            return MIN_TICK, False
        idx = bisect_right(self._initialized_ticks, tick)
        if idx < len(self._initialized_ticks):
            return self._initialized_ticks[idx], True
        return MAX_TICK, False

    def _cross(self, tick: int, fee_growth_global0: int, fee_growth_global1: int) -> int:
        info = self.ticks[tick]
        info.fee_growth_outside0_x128 = (fee_growth_global0 - info.fee_growth_outside0_x128) % 2 ** 256
        info.fee_growth_outside1_x128 = (fee_growth_global1 - info.fee_growth_outside1_x128) % 2 ** 256
        return info.liquidity_net

    def swap(self, caller: SettlementCallbacks, recipient: str, zero_for_one: bool,
             amount_specified: int, sqrt_price_limit_x96: int,
             data: SettlementContext) -> Tuple[int, int]:
        if amount_specified == 0:
            raise PoolError("AS", "스왑 수량이 0입니다")

        if zero_for_one:
            if not (MIN_SQRT_RATIO < sqrt_price_limit_x96 < self.sqrt_price_x96):
                raise PoolError("SPL", f"{sqrt_price_limit_x96}")
        else:
            if not (self.sqrt_price_x96 < sqrt_price_limit_x96 < MAX_SQRT_RATIO):
                raise PoolError("SPL", f"{sqrt_price_limit_x96}")

        with self._lock(), atomic(self, self.ledger):
            self._write_observation()

            exact_input = amount_specified > 0
            remaining = amount_specified
            calculated = 0
            sqrt_price = self.sqrt_price_x96
            tick = self.tick
            liquidity = self.liquidity
            fee_growth_global0 = self.fee_growth_global0_x128
            fee_growth_global1 = self.fee_growth_global1_x128

            while remaining != 0 and sqrt_price != sqrt_price_limit_x96:
                step_start = sqrt_price
                tick_next, initialized = self._next_initialized_tick(tick, zero_for_one)
                tick_next = max(MIN_TICK, min(MAX_TICK, tick_next))
                sqrt_next = get_sqrt_ratio_at_tick(tick_next)

                if zero_for_one:
                    target = sqrt_price_limit_x96 if sqrt_next < sqrt_price_limit_x96 else sqrt_next
                else:
                    target = sqrt_price_limit_x96 if sqrt_next > sqrt_price_limit_x96 else sqrt_next

                step = compute_swap_step(sqrt_price, target, liquidity, remaining, self.fee)
                sqrt_price = step.sqrt_ratio_next_x96

                if exact_input:
                    remaining -= step.amount_in + step.fee_amount
                    calculated -= step.amount_out
                else:
                    remaining += step.amount_out
                    calculated += step.amount_in + step.fee_amount

                if liquidity > 0:
                    growth = mul_div(step.fee_amount, Q128, liquidity)
                    if zero_for_one:
                        fee_growth_global0 = (fee_growth_global0 + growth) % 2 ** 256
                    else:
                        fee_growth_global1 = (fee_growth_global1 + growth) % 2 ** 256

                if sqrt_price == sqrt_next:
                    if initialized:
                        liquidity_net = self._cross(tick_next, fee_growth_global0, fee_growth_global1)
                        if zero_for_one:
                            liquidity_net = -liquidity_net
                        liquidity += liquidity_net
                    tick = tick_next - 1 if zero_for_one else tick_next
                elif sqrt_price != step_start:
                    tick = get_tick_at_sqrt_ratio(sqrt_price)

            self.sqrt_price_x96 = sqrt_price
            self.tick = tick
            self.liquidity = liquidity
            self.fee_growth_global0_x128 = fee_growth_global0
            self.fee_growth_global1_x128 = fee_growth_global1

            if zero_for_one == exact_input:
                amount0, amount1 = amount_specified - remaining, calculated
            else:
                amount0, amount1 = calculated, amount_specified - remaining

            balance0_before, balance1_before = self.balances()
            if zero_for_one:
                if amount1 < 0:
                    self.ledger.transfer(self.token1, self.address, recipient, -amount1)
                caller.on_swap_settle(amount0, amount1, data, self.address)
                if balance0_before + amount0 > self.balances()[0]:
                    raise PoolError("IIA", f"token0 입력 {amount0} 미지급")
            else:
                if amount0 < 0:
                    self.ledger.transfer(self.token0, self.address, recipient, -amount0)
                caller.on_swap_settle(amount0, amount1, data, self.address)
                if balance1_before + amount1 > self.balances()[1]:
                    raise PoolError("IIA", f"token1 입력 {amount1} 미지급")

        logger.debug("swap zero_for_one=%s specified=%d -> (%d, %d), tick %d",
                     zero_for_one, amount_specified, amount0, amount1, self.tick)
        return amount0, amount1
