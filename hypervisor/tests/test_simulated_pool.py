"""
SimulatedPool 테스트

틱/포지션 장부, 스왑의 틱 크로싱, 수수료 누적, 오라클 관측을 테스트합니다.
"""

import pytest

from ..constants import Q96
from ..errors import IdenticalTokensError, PoolError
from ..math.sqrt_price_math import encode_price_sqrt
from ..math.tick_math import MIN_SQRT_RATIO, get_sqrt_ratio_at_tick
from ..pool.adapter import SettlementContext
from ..pool.simulated import SimulatedPool
from .conftest import TOKEN0, TOKEN1


class Freeloader:
    """콜백에서 아무것도 지불하지 않는 호출자"""

    address = "freeloader"

    def on_mint_settle(self, amount0_owed, amount1_owed, data, sender):
        pass

    def on_swap_settle(self, amount0_delta, amount1_delta, data, sender):
        pass


class TestConstruction:

    def test_initial_state(self, pool):
        assert pool.slot0().sqrt_price_x96 == Q96
        assert pool.slot0().tick == 0
        assert pool.liquidity == 0
        assert pool.tick_spacing == 60

    def test_identical_tokens(self, ledger):
        with pytest.raises(IdenticalTokensError):
            SimulatedPool(ledger, TOKEN0, TOKEN0, 3000, Q96)

    def test_unsorted_tokens(self, ledger):
        with pytest.raises(ValueError):
            SimulatedPool(ledger, TOKEN1, TOKEN0, 3000, Q96)

    def test_unknown_fee_tier(self, ledger):
        with pytest.raises(ValueError):
            SimulatedPool(ledger, TOKEN0, TOKEN1, 1234, Q96)


class TestMintBurnCollect:

    def test_mint_in_range(self, pool, trader):
        """범위 내 민트: 두 토큰 모두 필요, 활성 유동성 증가"""
        amount0, amount1 = trader.mint(-60, 60, 10**18)
        assert amount0 > 0
        assert amount1 > 0
        assert abs(amount0 - amount1) <= 1
        assert pool.liquidity == 10**18
        assert pool.balances() == (amount0, amount1)
        assert pool.tick_info(-60).liquidity_net == 10**18
        assert pool.tick_info(60).liquidity_net == -10**18
        assert pool.position_info("trader", -60, 60).liquidity == 10**18

    def test_mint_above_range(self, pool, trader):
        """현재 가격 위 범위: token0만 필요, 활성 유동성 불변"""
        amount0, amount1 = trader.mint(60, 120, 10**18)
        assert amount0 > 0
        assert amount1 == 0
        assert pool.liquidity == 0

    def test_mint_below_range(self, pool, trader):
        amount0, amount1 = trader.mint(-120, -60, 10**18)
        assert amount0 == 0
        assert amount1 > 0

    @pytest.mark.parametrize("lower, upper, code", [
        (60, -60, "TLU"),
        (-887340, 0, "TLM"),
        (0, 887340, "TUM"),
        (-61, 60, "TS"),
    ])
    def test_invalid_ticks(self, trader, lower, upper, code):
        with pytest.raises(PoolError) as exc_info:
            trader.mint(lower, upper, 10**18)
        assert exc_info.value.code == code

    def test_unpaid_mint(self, pool):
        with pytest.raises(PoolError) as exc_info:
            pool.mint(Freeloader(), -60, 60, 10**18, SettlementContext("freeloader"))
        assert exc_info.value.code == "M0"

    def test_unpaid_mint_leaves_no_position(self, pool, ledger):
        """정산 실패한 민트는 포지션, 틱, 활성 유동성을 남기지 않음"""
        pool_before, ledger_before = pool.snapshot(), ledger.snapshot()

        with pytest.raises(PoolError):
            pool.mint(Freeloader(), -600, 600, 10**18, SettlementContext("freeloader"))

        assert pool.position_info("freeloader", -600, 600) == (0, 0, 0)
        assert pool.liquidity == 0
        assert pool.snapshot() == pool_before
        assert ledger.snapshot() == ledger_before

    def test_zero_burn_on_empty_position(self, pool):
        with pytest.raises(PoolError) as exc_info:
            pool.burn("nobody", -60, 60, 0)
        assert exc_info.value.code == "NP"

    def test_burn_more_than_position(self, pool, trader):
        trader.mint(-60, 60, 10**18)
        with pytest.raises(PoolError):
            pool.burn("trader", -60, 60, 10**18 + 1)

    def test_burn_then_collect(self, pool, trader, ledger):
        """소각량은 tokens owed에 적립되고 collect로 인출"""
        minted0, minted1 = trader.mint(-60, 60, 10**18)
        burned0, burned1 = pool.burn("trader", -60, 60, 10**18)
        assert minted0 - 1 <= burned0 <= minted0
        assert minted1 - 1 <= burned1 <= minted1
        assert pool.position_info("trader", -60, 60).tokens_owed0 == burned0
        assert pool.liquidity == 0
        assert pool.tick_info(-60).liquidity_gross == 0

        before = ledger.balance_of(TOKEN0, "receiver")
        collected = pool.collect("trader", "receiver", -60, 60, 2 ** 128 - 1, 2 ** 128 - 1)
        assert collected == (burned0, burned1)
        assert ledger.balance_of(TOKEN0, "receiver") - before == burned0
        assert pool.position_info("trader", -60, 60) == (0, 0, 0)

    def test_partial_collect(self, pool, trader):
        trader.mint(-60, 60, 10**18)
        burned0, _ = pool.burn("trader", -60, 60, 10**18)
        assert pool.collect("trader", "receiver", -60, 60, 10, 0) == (10, 0)
        assert pool.position_info("trader", -60, 60).tokens_owed0 == burned0 - 10

    def test_collect_unknown_position(self, pool):
        assert pool.collect("nobody", "receiver", -60, 60, 100, 100) == (0, 0)


class TestSwap:

    def test_exact_input_token0(self, pool, trader, ledger):
        trader.mint(-600, 600, 10**21)
        balance0 = ledger.balance_of(TOKEN0, "trader")
        balance1 = ledger.balance_of(TOKEN1, "trader")

        amount0, amount1 = trader.sell_token0(10**17)

        assert amount0 == 10**17
        assert amount1 < 0
        assert ledger.balance_of(TOKEN0, "trader") == balance0 - amount0
        assert ledger.balance_of(TOKEN1, "trader") == balance1 - amount1
        assert pool.slot0().sqrt_price_x96 < Q96
        assert pool.tick < 0
        assert pool.fee_growth_global0_x128 > 0
        assert pool.fee_growth_global1_x128 == 0

    def test_exact_input_token1(self, pool, trader):
        trader.mint(-600, 600, 10**21)
        amount0, amount1 = trader.sell_token1(10**17)
        assert amount1 == 10**17
        assert amount0 < 0
        assert pool.tick >= 0
        assert pool.slot0().sqrt_price_x96 > Q96
        assert pool.fee_growth_global1_x128 > 0

    def test_exact_output(self, pool, trader):
        """음수 amount_specified는 정확한 출력량"""
        trader.mint(-600, 600, 10**21)
        amount0, amount1 = pool.swap(trader, "trader", True, -10**16, MIN_SQRT_RATIO + 1,
                                     SettlementContext("trader"))
        assert amount1 == -10**16
        assert amount0 > 10**16

    def test_crosses_initialized_tick(self, pool, trader):
        """-60을 넘으면 좁은 포지션의 유동성이 빠짐"""
        trader.mint(-60, 60, 10**18)
        trader.mint(-600, 600, 10**18)
        assert pool.liquidity == 2 * 10**18

        trader.sell_token0(10**16)

        assert -600 < pool.tick < -60
        assert pool.liquidity == 10**18

    def test_cross_back_restores_liquidity(self, pool, trader):
        trader.mint(-60, 60, 10**18)
        trader.mint(-600, 600, 10**18)
        trader.sell_token0(10**16)
        trader.sell_token1(10**16)
        assert pool.tick > -60
        assert pool.liquidity == 2 * 10**18

    def test_fees_accrue_to_in_range_position(self, pool, trader):
        trader.mint(-600, 600, 10**21)
        trader.mint(600, 1200, 10**21)
        trader.sell_token0(10**18)

        pool.burn("trader", -600, 600, 0)
        in_range = pool.position_info("trader", -600, 600)
        assert in_range.tokens_owed0 > 0
        # 수수료 = 입력의 0.3% (위치 내림 오차 허용)
        assert abs(in_range.tokens_owed0 - 10**18 * 3000 // 10**6) <= 2

        pool.burn("trader", 600, 1200, 0)
        assert pool.position_info("trader", 600, 1200).tokens_owed0 == 0

    def test_no_liquidity_moves_to_limit(self, pool, trader):
        limit = get_sqrt_ratio_at_tick(-1000)
        amount0, amount1 = pool.swap(trader, "trader", True, 10**18, limit, SettlementContext("trader"))
        assert (amount0, amount1) == (0, 0)
        assert pool.slot0().sqrt_price_x96 == limit
        assert pool.tick == -1000

    @pytest.mark.parametrize("zero_for_one, limit", [
        (True, Q96 + 1),
        (True, MIN_SQRT_RATIO),
        (False, Q96 - 1),
    ])
    def test_invalid_price_limit(self, pool, trader, zero_for_one, limit):
        with pytest.raises(PoolError) as exc_info:
            pool.swap(trader, "trader", zero_for_one, 10**18, limit, SettlementContext("trader"))
        assert exc_info.value.code == "SPL"

    def test_zero_amount(self, pool, trader):
        with pytest.raises(PoolError) as exc_info:
            pool.swap(trader, "trader", True, 0, MIN_SQRT_RATIO + 1, SettlementContext("trader"))
        assert exc_info.value.code == "AS"

    def test_unpaid_swap(self, pool, trader):
        trader.mint(-600, 600, 10**21)
        with pytest.raises(PoolError) as exc_info:
            pool.swap(Freeloader(), "freeloader", True, 10**17, MIN_SQRT_RATIO + 1,
                      SettlementContext("freeloader"))
        assert exc_info.value.code == "IIA"

    def test_unpaid_swap_reverts_price_and_output(self, pool, trader, ledger):
        """정산 실패한 스왑은 가격 이동과 출력 토큰 지급을 모두 되돌림"""
        trader.mint(-600, 600, 10**21)
        slot0_before = pool.slot0()
        pool_before, ledger_before = pool.snapshot(), ledger.snapshot()

        with pytest.raises(PoolError):
            pool.swap(Freeloader(), "freeloader", True, 10**17, MIN_SQRT_RATIO + 1,
                      SettlementContext("freeloader"))

        assert pool.slot0() == slot0_before
        assert pool.ticks == pool_before["ticks"]
        assert ledger.balance_of(TOKEN1, "freeloader") == 0
        assert pool.snapshot() == pool_before
        assert ledger.snapshot() == ledger_before

        # 잠금이 풀려 다음 스왑은 정상 진행
        trader.sell_token0(10**17)
        assert pool.tick < 0


class TestOracle:

    def test_twap_at_constant_tick(self, pool):
        assert pool.observe_twap(60) == 0

    def test_twap_after_price_move(self, pool, trader):
        """관측은 가격 변경 전에 기록되므로 TWAP은 뒤따라감"""
        trader.mint(-6000, 6000, 10**21)
        trader.sell_token0(10**20)
        new_tick = pool.tick
        assert new_tick < 0

        assert pool.observe_twap(60) == 0
        pool.advance_time(60)
        assert pool.observe_twap(60) == new_tick
        assert pool.observe_twap(120) == -((-new_tick * 60) // 120)

    def test_observe_history(self, pool, trader):
        trader.mint(-6000, 6000, 10**21)
        trader.sell_token0(10**20)
        tick_a = pool.tick
        pool.advance_time(100)
        trader.sell_token1(5 * 10**19)
        tick_b = pool.tick
        pool.advance_time(50)

        now, before_b, before_a = pool.observe([0, 50, 150])
        assert now - before_b == tick_b * 50
        assert before_b - before_a == tick_a * 100

    def test_observe_between_observations(self, pool, trader):
        trader.mint(-6000, 6000, 10**21)
        trader.sell_token0(10**20)
        tick_a = pool.tick
        pool.advance_time(100)
        trader.sell_token1(10**19)

        at_50, at_100 = pool.observe([50, 100])
        assert at_50 - at_100 == tick_a * 50

    def test_too_old(self, pool):
        with pytest.raises(PoolError) as exc_info:
            pool.observe([10**6])
        assert exc_info.value.code == "OLD"

    def test_window_must_be_positive(self, pool):
        with pytest.raises(ValueError):
            pool.observe_twap(0)

    def test_time_cannot_go_backwards(self, pool):
        with pytest.raises(ValueError):
            pool.advance_time(-1)


class TestLock:

    def test_reentrant_mint_rejected(self, pool, ledger):
        """mint 콜백 안에서 다시 풀을 호출하면 LOK"""

        class Reentrant:
            address = "reentrant"

            def on_mint_settle(self, amount0_owed, amount1_owed, data, sender):
                pool.burn("reentrant", -60, 60, 0)

        with pytest.raises(PoolError) as exc_info:
            pool.mint(Reentrant(), -60, 60, 10**18, SettlementContext("reentrant"))
        assert exc_info.value.code == "LOK"
        assert pool._unlocked
