"""
Swap Math 테스트

compute_swap_step의 목표 가격 도달/미도달, 수수료, exact output 상한을 테스트합니다.
"""

import pytest

from ..constants import Q96
from ..math.sqrt_price_math import (
    encode_price_sqrt,
    get_next_sqrt_price_from_input,
    get_next_sqrt_price_from_output,
)
from ..math.swap_math import compute_swap_step


class TestComputeSwapStep:
    """compute_swap_step 테스트"""

    def test_exact_in_capped_at_target(self):
        """입력이 충분하면 목표 가격에서 멈추고 입력이 남음"""
        target = encode_price_sqrt(101, 100)
        step = compute_swap_step(Q96, target, 2 * 10**18, 10**18, 600)
        assert step.sqrt_ratio_next_x96 == target
        assert step.amount_in + step.fee_amount < 10**18
        assert step.amount_out > 0

    def test_exact_in_fully_spent(self):
        """목표에 못 미치면 입력 전체가 입력 + 수수료로 소비됨"""
        target = encode_price_sqrt(1000, 100)
        step = compute_swap_step(Q96, target, 2 * 10**18, 10**18, 600)
        assert step.sqrt_ratio_next_x96 < target
        assert step.amount_in + step.fee_amount == 10**18

    def test_exact_in_zero_for_one_moves_price_down(self):
        target = encode_price_sqrt(100, 101)
        step = compute_swap_step(Q96, target, 2 * 10**18, 10**15, 3000)
        assert target < step.sqrt_ratio_next_x96 < Q96
        assert step.amount_in + step.fee_amount == 10**15

    def test_fee_rounds_up(self):
        """목표 도달 시 fee = ceil(amount_in * fee / (1e6 - fee))"""
        target = encode_price_sqrt(101, 100)
        step = compute_swap_step(Q96, target, 2 * 10**18, 10**18, 3000)
        expected = -(-step.amount_in * 3000 // (10**6 - 3000))
        assert step.fee_amount == expected

    def test_exact_out_capped_at_target(self):
        """요청 출력이 너무 크면 목표 가격에서 멈춤"""
        target = encode_price_sqrt(101, 100)
        step = compute_swap_step(Q96, target, 2 * 10**18, -10**18, 600)
        assert step.sqrt_ratio_next_x96 == target
        assert step.amount_out < 10**18

    def test_exact_out_exact_amount(self):
        """요청 출력이 작으면 정확히 그만큼 출력"""
        target = encode_price_sqrt(101, 100)
        step = compute_swap_step(Q96, target, 2 * 10**18, -10**15, 600)
        assert step.sqrt_ratio_next_x96 < target
        assert step.amount_out == 10**15

    def test_zero_liquidity_jumps_to_target(self):
        """유동성이 없으면 입력 없이 목표 가격으로 이동"""
        target = encode_price_sqrt(100, 101)
        step = compute_swap_step(Q96, target, 0, 10**18, 3000)
        assert step.sqrt_ratio_next_x96 == target
        assert step.amount_in == 0
        assert step.amount_out == 0
        assert step.fee_amount == 0


class TestNextSqrtPrice:
    """get_next_sqrt_price_from_input / output 테스트"""

    def test_input_zero_amount_unchanged(self):
        assert get_next_sqrt_price_from_input(Q96, 10**18, 0, True) == Q96
        assert get_next_sqrt_price_from_input(Q96, 10**18, 0, False) == Q96

    def test_input_direction(self):
        assert get_next_sqrt_price_from_input(Q96, 10**18, 10**17, True) < Q96
        assert get_next_sqrt_price_from_input(Q96, 10**18, 10**17, False) > Q96

    def test_input_token1_exact(self):
        """token1 입력: √P' = √P + Δy / L (내림)"""
        result = get_next_sqrt_price_from_input(Q96, 10**18, 10**17, False)
        assert result == Q96 + (10**17 * Q96) // 10**18

    def test_zero_liquidity_rejected(self):
        with pytest.raises(ValueError):
            get_next_sqrt_price_from_input(Q96, 0, 10**17, True)

    def test_output_exceeding_reserves_rejected(self):
        """가용 token1보다 많은 출력은 불가"""
        with pytest.raises(ValueError):
            get_next_sqrt_price_from_output(Q96, 10**18, 10**18, True)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
