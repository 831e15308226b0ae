"""
Full Math - 고정소수점 곱셈/나눗셈

Solidity FullMath.mulDiv / mulDivRoundingUp 과 같은 결과를 내는 정수 연산.
Python 정수는 오버플로우가 없으므로 512비트 중간값 처리가 필요 없습니다.

References:
- Uniswap V3 Core: contracts/libraries/FullMath.sol
- Uniswap V3 Core: contracts/libraries/UnsafeMath.sol
- Uniswap V3 Periphery: contracts/libraries/LiquidityAmounts.sol (toUint128)
"""

from ..constants import UINT128_MAX


def mul_div(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator)"""
    if denominator == 0:
        raise ZeroDivisionError("mul_div: denominator가 0입니다")
    return (a * b) // denominator


def mul_div_rounding_up(a: int, b: int, denominator: int) -> int:
    """ceil(a * b / denominator)"""
    result = mul_div(a, b, denominator)
    if (a * b) % denominator > 0:
        result += 1
    return result


def div_rounding_up(numerator: int, denominator: int) -> int:
    """ceil(numerator / denominator)"""
    result = numerator // denominator
    if numerator % denominator > 0:
        result += 1
    return result


def div_toward_zero(numerator: int, denominator: int) -> int:
    """Solidity 부호 있는 정수 나눗셈 (0 방향 절삭)"""
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator > 0) else -quotient


def to_uint128(x: int) -> int:
    """uint128 범위 확인

    Raises:
        ValueError: 음수이거나 2^128 이상인 경우
    """
    if x < 0 or x > UINT128_MAX:
        raise ValueError(f"uint128 범위를 벗어났습니다: {x}")
    return x
