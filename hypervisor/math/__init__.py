"""
Math layer for Hypervisor

온체인 수준 정밀도의 수학 함수들:
- tick_math: Tick ↔ sqrtPrice 변환, 범위 검증
- liquidity_math: 유동성 ↔ 토큰 수량 (Position Math)
- sqrt_price_math: 스왑 후 sqrtPriceX96 계산
- swap_math: 스왑 스텝
- fee_math: 백서 기반 수수료 계산
- full_math: mulDiv 반올림 헬퍼
"""

from .tick_math import (
    MIN_SQRT_RATIO,
    MAX_SQRT_RATIO,
    get_tick_at_sqrt_ratio,
    get_sqrt_ratio_at_tick,
    price_from_sqrt_ratio,
    check_range,
    floor_tick_to_spacing,
    round_tick_to_spacing,
    get_tick_spacing_for_fee,
)
from .liquidity_math import (
    get_amount0_delta,
    get_amount1_delta,
    get_liquidity_for_amounts,
    get_amounts_for_liquidity,
    amounts_for_liquidity,
    liquidity_for_amounts,
)
from .sqrt_price_math import (
    sqrt_price_x96_to_price,
    encode_price_sqrt,
)
from .swap_math import compute_swap_step, SwapStep
from .fee_math import (
    fee_growth_inside,
    calculate_uncollected_fees,
    calculate_fee_growth_delta,
    fee_recipient_cut,
)
from .full_math import mul_div, mul_div_rounding_up, to_uint128
