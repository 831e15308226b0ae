"""
Hypervisor 상수 정의

온체인 수준 정밀도를 위한 상수들:
- Q96: sqrt price 인코딩에 사용 (2^96)
- Q128: fee growth 인코딩에 사용 (2^128)
- PRECISION: 가격 평가용 고정소수점 (1e36)
- FEE_TIERS: 지원되는 수수료 티어
- TICK_SPACINGS: 각 수수료 티어별 틱 간격
"""

from typing import Dict

# Fixed-point 인코딩 상수
Q96: int = 2 ** 96
Q128: int = 2 ** 128
Q192: int = 2 ** 192

# token0 가격을 token1 단위로 표현할 때 사용하는 정밀도
PRECISION: int = 10 ** 36

# 수수료 티어 (pips, 1e-6 단위)
# 500 = 0.05%, 3000 = 0.30%, 10000 = 1.00%
FEE_TIERS: Dict[int, str] = {
    100: "0.01%",
    500: "0.05%",
    3000: "0.30%",
    10000: "1.00%",
}

# 각 수수료 티어별 틱 간격
TICK_SPACINGS: Dict[int, int] = {
    100: 1,
    500: 10,
    3000: 60,
    10000: 200,
}

FEE_PIPS_DENOMINATOR: int = 1_000_000

# 틱 범위 상수
MIN_TICK: int = -887272
MAX_TICK: int = 887272

# uint 최대값
UINT256_MAX: int = 2 ** 256 - 1
UINT128_MAX: int = 2 ** 128 - 1

# 리밸런스 시 수확한 수수료 중 fee recipient 몫 (3/20 = 15%)
FEE_NUMERATOR: int = 3
FEE_DENOMINATOR: int = 20

# TWAP 기본 조회 구간 (초)
DEFAULT_TWAP_INTERVAL: int = 60

ZERO_ADDRESS: str = "0x" + "0" * 40
