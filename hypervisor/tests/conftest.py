"""
공용 fixture

tick 0 (price = 1.0), fee 3000 / tick spacing 60 풀 위의 빈 vault와
자금을 받은 사용자, 풀과 직접 거래하는 외부 trader를 제공합니다.
"""

import pytest

from ..constants import UINT256_MAX
from ..math.sqrt_price_math import encode_price_sqrt
from ..math.tick_math import MIN_SQRT_RATIO, MAX_SQRT_RATIO
from ..pool.adapter import SettlementContext
from ..pool.simulated import SimulatedPool
from ..tokens import TokenLedger
from ..vault.hypervisor import Hypervisor

TOKEN0 = "0x1000000000000000000000000000000000000001"
TOKEN1 = "0x2000000000000000000000000000000000000002"
VAULT = "0xva01700000000000000000000000000000000000"
OWNER = "owner"
ALICE = "alice"
BOB = "bob"
FEE_RECIPIENT = "fee-recipient"

INITIAL_BALANCE = 10 ** 24


class Trader:
    """풀과 직접 거래하는 외부 계정 (콜백에서 자기 잔고로 지불)"""

    def __init__(self, address: str, ledger: TokenLedger, pool: SimulatedPool):
        self.address = address
        self.ledger = ledger
        self.pool = pool

    def on_mint_settle(self, amount0_owed, amount1_owed, data, sender):
        if amount0_owed > 0:
            self.ledger.transfer(self.pool.token0, self.address, sender, amount0_owed)
        if amount1_owed > 0:
            self.ledger.transfer(self.pool.token1, self.address, sender, amount1_owed)

    def on_swap_settle(self, amount0_delta, amount1_delta, data, sender):
        if amount0_delta > 0:
            self.ledger.transfer(self.pool.token0, self.address, sender, amount0_delta)
        if amount1_delta > 0:
            self.ledger.transfer(self.pool.token1, self.address, sender, amount1_delta)

    def mint(self, tick_lower, tick_upper, liquidity):
        return self.pool.mint(self, tick_lower, tick_upper, liquidity, SettlementContext(self.address))

    def sell_token0(self, amount):
        return self.pool.swap(self, self.address, True, amount, MIN_SQRT_RATIO + 1,
                              SettlementContext(self.address))

    def sell_token1(self, amount):
        return self.pool.swap(self, self.address, False, amount, MAX_SQRT_RATIO - 1,
                              SettlementContext(self.address))


def fund(ledger: TokenLedger, account: str, spender: str = None, amount: int = INITIAL_BALANCE):
    for token in (TOKEN0, TOKEN1):
        ledger.mint(token, account, amount)
        if spender is not None:
            ledger.approve(token, account, spender, UINT256_MAX)


@pytest.fixture
def ledger():
    return TokenLedger()


@pytest.fixture
def pool(ledger):
    pool = SimulatedPool(ledger, TOKEN0, TOKEN1, fee=3000, sqrt_price_x96=encode_price_sqrt(1, 1))
    pool.advance_time(3600)
    return pool


@pytest.fixture
def vault(pool, ledger):
    vault = Hypervisor(VAULT, pool, ledger, owner=OWNER, twap_interval=60)
    fund(ledger, ALICE, VAULT)
    fund(ledger, BOB, VAULT)
    return vault


@pytest.fixture
def trader(pool, ledger):
    trader = Trader("trader", ledger, pool)
    fund(ledger, trader.address)
    return trader
