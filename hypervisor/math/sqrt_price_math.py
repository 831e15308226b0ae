"""
Sqrt Price Math - sqrtPriceX96 관련 계산

Uniswap V3의 가격은 sqrtPriceX96 형식으로 저장됩니다.
sqrtPriceX96 = sqrt(price) * 2^96

References:
- Uniswap V3 Core: contracts/libraries/SqrtPriceMath.sol
"""

import math

from ..constants import Q96, UINT256_MAX
from .full_math import mul_div_rounding_up, div_rounding_up


def sqrt_price_x96_to_price(
    sqrt_price_x96: int,
    decimal0: int = 18,
    decimal1: int = 18
) -> float:
    """sqrtPriceX96을 human-readable 가격으로 변환 (표시용)

    가격 = (sqrtPriceX96 / 2^96)^2 / 10^(decimal1 - decimal0)

    Returns:
        가격 (token1/token0 기준)
    """
    sqrt_price = sqrt_price_x96 / Q96
    return sqrt_price ** 2 / (10 ** (decimal1 - decimal0))


def encode_price_sqrt(reserve1: int, reserve0: int) -> int:
    """reserve1/reserve0 비율을 sqrtPriceX96으로 인코딩 (정수 연산)

    Example:
        >>> encode_price_sqrt(1, 1) == 2 ** 96
        True
    """
    if reserve0 <= 0 or reserve1 <= 0:
        raise ValueError("reserve는 양수여야 합니다")
    return math.isqrt((reserve1 << 192) // reserve0)


def get_next_sqrt_price_from_amount0_rounding_up(
    sqrt_price_x96: int,
    liquidity: int,
    amount: int,
    add: bool
) -> int:
    """amount0 변화에 따른 다음 sqrtPriceX96 계산 (올림)

    token0를 추가하면 가격이 내려가고, 제거하면 올라갑니다.
    올림하여 가격이 목표를 지나치지 않게 합니다.
    """
    if amount == 0:
        return sqrt_price_x96

    numerator1 = liquidity << 96
    product = amount * sqrt_price_x96

    if add:
        if product <= UINT256_MAX:
            denominator = numerator1 + product
            if denominator <= UINT256_MAX:
                return mul_div_rounding_up(numerator1, sqrt_price_x96, denominator)
        return div_rounding_up(numerator1, (numerator1 // sqrt_price_x96) + amount)

    if product > UINT256_MAX or numerator1 <= product:
        raise ValueError("token0 출력이 가용 유동성을 초과합니다")
    return mul_div_rounding_up(numerator1, sqrt_price_x96, numerator1 - product)


def get_next_sqrt_price_from_amount1_rounding_down(
    sqrt_price_x96: int,
    liquidity: int,
    amount: int,
    add: bool
) -> int:
    """amount1 변화에 따른 다음 sqrtPriceX96 계산 (내림)"""
    if add:
        return sqrt_price_x96 + (amount << 96) // liquidity

    quotient = div_rounding_up(amount << 96, liquidity)
    if sqrt_price_x96 <= quotient:
        raise ValueError("token1 출력이 가용 유동성을 초과합니다")
    return sqrt_price_x96 - quotient


def get_next_sqrt_price_from_input(
    sqrt_price_x96: int,
    liquidity: int,
    amount_in: int,
    zero_for_one: bool
) -> int:
    """입력 수량만큼 스왑한 뒤의 sqrtPriceX96"""
    if sqrt_price_x96 <= 0 or liquidity <= 0:
        raise ValueError("sqrtPrice와 유동성은 양수여야 합니다")

    if zero_for_one:
        return get_next_sqrt_price_from_amount0_rounding_up(sqrt_price_x96, liquidity, amount_in, True)
    return get_next_sqrt_price_from_amount1_rounding_down(sqrt_price_x96, liquidity, amount_in, True)


def get_next_sqrt_price_from_output(
    sqrt_price_x96: int,
    liquidity: int,
    amount_out: int,
    zero_for_one: bool
) -> int:
    """출력 수량만큼 스왑한 뒤의 sqrtPriceX96"""
    if sqrt_price_x96 <= 0 or liquidity <= 0:
        raise ValueError("sqrtPrice와 유동성은 양수여야 합니다")

    if zero_for_one:
        return get_next_sqrt_price_from_amount1_rounding_down(sqrt_price_x96, liquidity, amount_out, False)
    return get_next_sqrt_price_from_amount0_rounding_up(sqrt_price_x96, liquidity, amount_out, False)
