"""
Fee Math - 백서 기반 수수료 계산

풀은 틱 경계의 feeGrowthOutside와 전역 feeGrowthGlobal로
포지션별 수수료를 추적하고, vault는 리밸런스 때 수확한 수수료의
일부를 fee recipient에게 보냅니다.

References:
- 백서 Section 6.3: Tick-Indexed State (feeGrowthOutside)
- 백서 Section 6.4.1: Position-Indexed State (uncollected fees)

핵심 공식:
    f_a(i) = f_g - f_o(i)  if i_c >= i else f_o(i)     # 틱 i 위 수수료
    f_b(i) = f_o(i)        if i_c >= i else f_g - f_o(i) # 틱 i 아래 수수료
    f_r = f_g - f_b(i_l) - f_a(i_u)                     # 범위 내 수수료
    f_u = l × (f_r(t_1) - f_r(t_0))                     # 미수령 수수료
"""

from ..constants import Q128, FEE_NUMERATOR, FEE_DENOMINATOR
from .full_math import mul_div

_WRAP = 2 ** 256


def fee_growth_above(
    tick_idx: int,
    current_tick: int,
    fee_growth_global: int,
    fee_growth_outside: int
) -> int:
    """틱 위에서 발생한 수수료 성장률 (f_a)"""
    if current_tick >= tick_idx:
        return (fee_growth_global - fee_growth_outside) % _WRAP
    return fee_growth_outside


def fee_growth_below(
    tick_idx: int,
    current_tick: int,
    fee_growth_global: int,
    fee_growth_outside: int
) -> int:
    """틱 아래에서 발생한 수수료 성장률 (f_b)"""
    if current_tick >= tick_idx:
        return fee_growth_outside
    return (fee_growth_global - fee_growth_outside) % _WRAP


def fee_growth_inside(
    tick_lower: int,
    tick_upper: int,
    current_tick: int,
    fee_growth_global: int,
    fee_growth_outside_lower: int,
    fee_growth_outside_upper: int
) -> int:
    """범위 내 fee growth 계산 (f_r)

    f_r = f_g - f_b(i_l) - f_a(i_u)
    Solidity unchecked 블록처럼 uint256 랩어라운드를 적용합니다.
    """
    f_b = fee_growth_below(tick_lower, current_tick, fee_growth_global, fee_growth_outside_lower)
    f_a = fee_growth_above(tick_upper, current_tick, fee_growth_global, fee_growth_outside_upper)
    return (fee_growth_global - f_b - f_a) % _WRAP


def calculate_fee_growth_delta(fee_growth_current: int, fee_growth_previous: int) -> int:
    """두 시점 간 fee growth 변화량 (uint256 랩어라운드)"""
    return (fee_growth_current - fee_growth_previous) % _WRAP


def calculate_uncollected_fees(
    liquidity: int,
    fee_growth_inside_current: int,
    fee_growth_inside_last: int
) -> int:
    """미수령 수수료 계산 (f_u), 토큰 최소 단위로 내림

    f_u = l × (f_r(t_1) - f_r(t_0)) / 2^128
    """
    delta = calculate_fee_growth_delta(fee_growth_inside_current, fee_growth_inside_last)
    return mul_div(delta, liquidity, Q128)


def fee_recipient_cut(fees: int) -> int:
    """수확한 수수료 중 fee recipient 몫: floor(fees * 3 / 20)"""
    return fees * FEE_NUMERATOR // FEE_DENOMINATOR
