"""
Hypervisor - 집중 유동성 풀 위의 능동 유동성 관리 vault

사용자는 두 토큰을 예치하고 vault 전체 자산에 대한 비례 지분을 받습니다.
소유자(매니저)는 주기적으로 리밸런스하여 모든 유동성을 회수하고, 수수료를 수확하고,
필요하면 스왑한 뒤 base 범위와 limit(단방향) 범위에 다시 배치합니다.

가격 평가:
    price = sqrtP(TWAP tick)^2 * 1e36 / 2^192   (token0 1단위의 token1 가치)
    shares = deposit1 + deposit0 * price / 1e36
    shares *= totalSupply / (pool0 * price / 1e36 + pool1)   (기존 지분이 있을 때)

모든 공개 작업(deposit / withdraw / rebalance)은 재진입 방지 플래그와
vault / 풀 / 토큰 원장 스냅샷 아래에서 실행되어, 실패 시 부분 상태가 남지 않습니다.
"""

import logging
from typing import Callable, List, NamedTuple, Optional, Tuple

from ..config import settings
from ..constants import (
    PRECISION,
    UINT128_MAX,
    UINT256_MAX,
    ZERO_ADDRESS,
)
from ..errors import (
    DepositCapError,
    InsufficientSharesError,
    InvalidRangeError,
    InvariantViolation,
    InvalidRecipientError,
    MaxTotalSupplyExceeded,
    UnauthorizedError,
    ZeroAmountError,
)
from ..math.fee_math import fee_recipient_cut
from ..math.full_math import to_uint128
from ..math.liquidity_math import amounts_for_liquidity, liquidity_for_amounts
from ..math.tick_math import (
    MIN_SQRT_RATIO,
    MAX_SQRT_RATIO,
    check_range,
    get_sqrt_ratio_at_tick,
    price_from_sqrt_ratio,
)
from ..pool.adapter import PoolAdapter, SettlementContext
from ..tokens import TokenLedger
from ..transaction import Checkpointable, NonReentrantLock, atomic
from .events import DepositEvent, OwnershipTransferred, RebalanceEvent, WithdrawEvent
from .shares import ShareLedger

logger = logging.getLogger(__name__)

# from 계정의 소유자 주소를 돌려주는 외부 조회 (예: 지분을 대신 보관하는 래핑 컨트랙트)
AccountOwnerResolver = Callable[[str], Optional[str]]


class TickRange(NamedTuple):
    lower: int
    upper: int


class PositionAmounts(NamedTuple):
    """포지션 유동성과 그 토큰 환산량 (미수령 tokens owed 포함)"""
    liquidity: int
    amount0: int
    amount1: int


class Hypervisor(Checkpointable):
    """base + limit 두 범위를 관리하는 vault

    사용법:
        vault = Hypervisor("0xvault", pool, ledger, owner="0xowner")
        shares = vault.deposit(1000, 1000, to="alice", sender="alice")
        vault.rebalance(-120, 120, 0, 60, "0xfee", 0, sender="0xowner")
        amount0, amount1 = vault.withdraw(shares, "alice", "alice", sender="alice")
    """

    _checkpoint_fields = (
        "owner",
        "base_lower",
        "base_upper",
        "limit_lower",
        "limit_upper",
        "shares",
        "max_total_supply",
        "deposit0_max",
        "deposit1_max",
        "events",
    )

    def __init__(
        self,
        address: str,
        pool: PoolAdapter,
        ledger: TokenLedger,
        owner: str,
        twap_interval: Optional[int] = None,
        account_owner_resolver: Optional[AccountOwnerResolver] = None
    ):
        self.address = address
        self.pool = pool
        self.ledger = ledger
        self.token0 = pool.token0
        self.token1 = pool.token1
        self.fee = pool.fee
        self.tick_spacing = pool.tick_spacing
        self.owner = owner
        self.twap_interval = twap_interval if twap_interval is not None else settings.TWAP_INTERVAL
        self.account_owner_resolver = account_owner_resolver

        self.base_lower = 0
        self.base_upper = 0
        self.limit_lower = 0
        self.limit_upper = 0

        self.shares = ShareLedger()
        self.max_total_supply = 0
        self.deposit0_max = UINT256_MAX
        self.deposit1_max = UINT256_MAX
        self.events: List[object] = []

        self._lock = NonReentrantLock()

    # ------------------------------------------------------------------
    # 조회
    # ------------------------------------------------------------------

    @property
    def total_supply(self) -> int:
        return self.shares.total_supply

    def balance_of(self, account: str) -> int:
        return self.shares.balance_of(account)

    @property
    def base_range(self) -> TickRange:
        return TickRange(self.base_lower, self.base_upper)

    @property
    def limit_range(self) -> TickRange:
        return TickRange(self.limit_lower, self.limit_upper)

    def idle_balances(self) -> Tuple[int, int]:
        """풀에 배치되지 않고 vault가 직접 보유한 잔고"""
        return (
            self.ledger.balance_of(self.token0, self.address),
            self.ledger.balance_of(self.token1, self.address),
        )

    def current_tick(self) -> int:
        """twap_interval 동안의 시간가중평균 틱"""
        return self.pool.observe_twap(self.twap_interval)

    def _position_amounts(self, tick_range: TickRange) -> PositionAmounts:
        info = self.pool.position_info(self.address, tick_range.lower, tick_range.upper)
        if info.liquidity == 0:
            return PositionAmounts(0, info.tokens_owed0, info.tokens_owed1)
        amount0, amount1 = amounts_for_liquidity(
            tick_range.lower, tick_range.upper, info.liquidity, self.pool.current_price()
        )
        return PositionAmounts(
            info.liquidity,
            amount0 + info.tokens_owed0,
            amount1 + info.tokens_owed1,
        )

    def get_base_position(self) -> PositionAmounts:
        return self._position_amounts(self.base_range)

    def get_limit_position(self) -> PositionAmounts:
        return self._position_amounts(self.limit_range)

    def get_total_amounts(self) -> Tuple[int, int]:
        """유휴 잔고 + base + limit 포지션 환산량"""
        base = self.get_base_position()
        limit = self.get_limit_position()
        idle0, idle1 = self.idle_balances()
        return idle0 + base.amount0 + limit.amount0, idle1 + base.amount1 + limit.amount1

    # ------------------------------------------------------------------
    # 내부 헬퍼
    # ------------------------------------------------------------------

    def _poke(self, tick_range: TickRange) -> None:
        """zero burn으로 풀이 미수령 수수료를 tokens owed에 반영하게 한다"""
        liquidity = self.pool.position_info(self.address, tick_range.lower, tick_range.upper).liquidity
        if liquidity > 0:
            self.pool.burn(self.address, tick_range.lower, tick_range.upper, 0)
            logger.debug("poke [%d, %d] L=%d", tick_range.lower, tick_range.upper, liquidity)

    def _burn_liquidity(
        self,
        tick_range: TickRange,
        liquidity: int,
        to: str,
        collect_all: bool
    ) -> Tuple[int, int]:
        """유동성을 소각하고 collect

        collect_all이면 포지션의 tokens owed 전체(수수료 포함)를,
        아니면 이번 소각분만 to에게 보낸다.
        """
        if liquidity == 0:
            return 0, 0
        owed0, owed1 = self.pool.burn(self.address, tick_range.lower, tick_range.upper, liquidity)
        collect0 = UINT128_MAX if collect_all else to_uint128(owed0)
        collect1 = UINT128_MAX if collect_all else to_uint128(owed1)
        return self.pool.collect(
            self.address, to, tick_range.lower, tick_range.upper, collect0, collect1
        )

    def _mint_liquidity(self, tick_range: TickRange, liquidity: int, payer: str) -> Tuple[int, int]:
        if liquidity == 0:
            return 0, 0
        return self.pool.mint(
            self, tick_range.lower, tick_range.upper, liquidity, SettlementContext(payer)
        )

    def _liquidity_for_shares(self, tick_range: TickRange, shares: int, total_supply: int) -> int:
        liquidity = self.pool.position_info(self.address, tick_range.lower, tick_range.upper).liquidity
        return to_uint128(liquidity * shares // total_supply)

    def _liquidity_for_idle_balances(self, tick_range: TickRange) -> int:
        idle0, idle1 = self.idle_balances()
        return liquidity_for_amounts(
            tick_range.lower, tick_range.upper, idle0, idle1, self.pool.current_price()
        )

    def _participants(self) -> List[Checkpointable]:
        return [p for p in (self, self.pool, self.ledger) if isinstance(p, Checkpointable)]

    def _only_owner(self, sender: str) -> None:
        if sender != self.owner:
            raise UnauthorizedError(f"소유자만 호출할 수 있습니다: {sender}")

    # ------------------------------------------------------------------
    # 예치 / 인출
    # ------------------------------------------------------------------

    def deposit(self, deposit0: int, deposit1: int, to: str, sender: str) -> int:
        """두 토큰을 예치하고 지분 발행

        Args:
            deposit0: token0 예치량
            deposit1: token1 예치량
            to: 지분 수령자
            sender: 토큰을 지불하는 호출자 (vault에 대한 허용량 필요)

        Returns:
            발행된 지분

        Raises:
            ZeroAmountError, DepositCapError, InvalidRecipientError: 사전 조건 위반
            MaxTotalSupplyExceeded: 발행 후 지분 상한 초과 (전체 롤백)
        """
        with self._lock, atomic(*self._participants()):
            if deposit0 < 0 or deposit1 < 0:
                raise ZeroAmountError(f"예치량은 음수일 수 없습니다: ({deposit0}, {deposit1})")
            if deposit0 == 0 and deposit1 == 0:
                raise ZeroAmountError("예치량이 모두 0입니다")
            if deposit0 >= self.deposit0_max or deposit1 >= self.deposit1_max:
                raise DepositCapError(
                    f"예치량이 상한 이상입니다: ({deposit0}, {deposit1}) / "
                    f"({self.deposit0_max}, {self.deposit1_max})"
                )
            if to in (ZERO_ADDRESS, self.address) or not to:
                raise InvalidRecipientError(f"유효하지 않은 수령자: {to!r}")

            base, limit = self.base_range, self.limit_range
            self._poke(base)
            self._poke(limit)

            price = price_from_sqrt_ratio(get_sqrt_ratio_at_tick(self.current_tick()))
            pool0, pool1 = self.get_total_amounts()

            shares = deposit1 + deposit0 * price // PRECISION
            if deposit0 > 0:
                self.ledger.transfer_from(self.token0, self.address, sender, self.address, deposit0)
            if deposit1 > 0:
                self.ledger.transfer_from(self.token1, self.address, sender, self.address, deposit1)

            total_supply = self.shares.total_supply
            if total_supply != 0:
                pool0_priced_in_token1 = pool0 * price // PRECISION
                if pool0_priced_in_token1 + pool1 == 0:
                    raise InvariantViolation("지분이 있지만 vault 자산 가치가 0입니다")
                shares = shares * total_supply // (pool0_priced_in_token1 + pool1)

            self.shares.mint(to, shares)
            self.events.append(DepositEvent(sender, to, shares, deposit0, deposit1))

            if self.max_total_supply != 0 and self.shares.total_supply > self.max_total_supply:
                raise MaxTotalSupplyExceeded(
                    f"지분 총량 {self.shares.total_supply} > 상한 {self.max_total_supply}"
                )

        logger.info("deposit: %s -> %s, (%d, %d) -> %d shares", sender, to, deposit0, deposit1, shares)
        return shares

    def withdraw(self, shares: int, to: str, from_account: str, sender: str) -> Tuple[int, int]:
        """지분을 소각하고 비례 자산 인출

        각 범위에서 liquidity * shares / totalSupply 만큼만 소각하고 그 소각분만 collect하여,
        남은 보유자 몫의 수수료는 풀에 그대로 둡니다.

        Returns:
            (amount0, amount1) 인출량
        """
        with self._lock, atomic(*self._participants()):
            if shares <= 0:
                raise ZeroAmountError("인출 지분이 0입니다")
            if to == ZERO_ADDRESS or not to:
                raise InvalidRecipientError(f"유효하지 않은 수령자: {to!r}")
            if sender != from_account:
                resolved = self.account_owner_resolver(from_account) if self.account_owner_resolver else None
                if resolved != sender:
                    raise UnauthorizedError(f"{sender}는 {from_account}의 지분을 인출할 수 없습니다")
            balance = self.shares.balance_of(from_account)
            if balance < shares:
                raise InsufficientSharesError(f"{from_account} 지분 {balance} < 인출 {shares}")

            base, limit = self.base_range, self.limit_range
            total_supply = self.shares.total_supply

            base0, base1 = self._burn_liquidity(
                base, self._liquidity_for_shares(base, shares, total_supply), to, collect_all=False
            )
            limit0, limit1 = self._burn_liquidity(
                limit, self._liquidity_for_shares(limit, shares, total_supply), to, collect_all=False
            )

            idle0, idle1 = self.idle_balances()
            unused0 = idle0 * shares // total_supply
            unused1 = idle1 * shares // total_supply
            if unused0 > 0:
                self.ledger.transfer(self.token0, self.address, to, unused0)
            if unused1 > 0:
                self.ledger.transfer(self.token1, self.address, to, unused1)

            amount0 = base0 + limit0 + unused0
            amount1 = base1 + limit1 + unused1

            self.shares.burn(from_account, shares)
            self.events.append(WithdrawEvent(from_account, to, shares, amount0, amount1))

        logger.info("withdraw: %s -> %s, %d shares -> (%d, %d)", from_account, to, shares, amount0, amount1)
        return amount0, amount1

    # ------------------------------------------------------------------
    # 리밸런스
    # ------------------------------------------------------------------

    def rebalance(
        self,
        base_lower: int,
        base_upper: int,
        limit_lower: int,
        limit_upper: int,
        fee_recipient: str,
        swap_quantity: int,
        sender: str
    ) -> RebalanceEvent:
        """포지션 전체 해체 → 수수료 분배 → (스왑) → base / limit 재배치

        swap_quantity > 0 이면 token0 그만큼을, < 0 이면 token1 |swap_quantity|를
        정확한 입력량으로 스왑합니다. 가격 한계는 풀의 극단값이므로
        슬리피지 보호가 없습니다. 호출자가 수량을 보수적으로 정해야 합니다.

        Returns:
            기록된 RebalanceEvent
        """
        with self._lock, atomic(*self._participants()):
            self._only_owner(sender)
            new_base = TickRange(base_lower, base_upper)
            new_limit = TickRange(limit_lower, limit_upper)
            check_range(new_base.lower, new_base.upper, self.tick_spacing, label="base")
            check_range(new_limit.lower, new_limit.upper, self.tick_spacing, label="limit")
            if new_base == new_limit:
                raise InvalidRangeError(f"base와 limit 범위가 같습니다: {list(new_base)}")

            base, limit = self.base_range, self.limit_range
            base_liquidity = self.pool.position_info(self.address, base.lower, base.upper).liquidity
            limit_liquidity = self.pool.position_info(self.address, limit.lower, limit.upper).liquidity
            self._poke(base)
            self._poke(limit)

            base_info = self.pool.position_info(self.address, base.lower, base.upper)
            limit_info = self.pool.position_info(self.address, limit.lower, limit.upper)
            fees0 = base_info.tokens_owed0 + limit_info.tokens_owed0
            fees1 = base_info.tokens_owed1 + limit_info.tokens_owed1

            self._burn_liquidity(base, base_liquidity, self.address, collect_all=True)
            self._burn_liquidity(limit, limit_liquidity, self.address, collect_all=True)

            cut0 = fee_recipient_cut(fees0)
            cut1 = fee_recipient_cut(fees1)
            if cut0 > 0:
                self.ledger.transfer(self.token0, self.address, fee_recipient, cut0)
            if cut1 > 0:
                self.ledger.transfer(self.token1, self.address, fee_recipient, cut1)

            idle0, idle1 = self.idle_balances()
            event = RebalanceEvent(
                self.current_tick(), idle0, idle1, fees0, fees1, self.shares.total_supply
            )
            self.events.append(event)

            if swap_quantity != 0:
                zero_for_one = swap_quantity > 0
                self.pool.swap(
                    self,
                    self.address,
                    zero_for_one,
                    abs(swap_quantity),
                    MIN_SQRT_RATIO + 1 if zero_for_one else MAX_SQRT_RATIO - 1,
                    SettlementContext(self.address),
                )
                logger.debug("rebalance swap: zero_for_one=%s quantity=%d", zero_for_one, abs(swap_quantity))

            self.base_lower, self.base_upper = new_base
            base_minted = self._liquidity_for_idle_balances(new_base)
            self._mint_liquidity(new_base, base_minted, self.address)

            self.limit_lower, self.limit_upper = new_limit
            limit_minted = self._liquidity_for_idle_balances(new_limit)
            self._mint_liquidity(new_limit, limit_minted, self.address)

        logger.info(
            "rebalance: base [%d, %d] L=%d, limit [%d, %d] L=%d, fees (%d, %d)",
            base_lower, base_upper, base_minted, limit_lower, limit_upper, limit_minted, fees0, fees1
        )
        return event

    # ------------------------------------------------------------------
    # settlement 콜백 (풀 전용, 재진입 보호 대상 아님)
    # ------------------------------------------------------------------

    def _pay(self, token: str, payer: str, recipient: str, amount: int) -> None:
        if payer == self.address:
            self.ledger.transfer(token, self.address, recipient, amount)
        else:
            self.ledger.transfer_from(token, self.address, payer, recipient, amount)

    def on_mint_settle(self, amount0_owed: int, amount1_owed: int,
                       data: SettlementContext, sender: str) -> None:
        if sender != self.pool.address:
            raise UnauthorizedError(f"풀만 mint 콜백을 호출할 수 있습니다: {sender}")
        if amount0_owed > 0:
            self._pay(self.token0, data.payer, sender, amount0_owed)
        if amount1_owed > 0:
            self._pay(self.token1, data.payer, sender, amount1_owed)

    def on_swap_settle(self, amount0_delta: int, amount1_delta: int,
                       data: SettlementContext, sender: str) -> None:
        if sender != self.pool.address:
            raise UnauthorizedError(f"풀만 swap 콜백을 호출할 수 있습니다: {sender}")
        if amount0_delta > 0:
            self._pay(self.token0, data.payer, sender, amount0_delta)
        elif amount1_delta > 0:
            self._pay(self.token1, data.payer, sender, amount1_delta)

    # ------------------------------------------------------------------
    # 소유자 설정
    # ------------------------------------------------------------------

    def set_max_total_supply(self, max_total_supply: int, sender: str) -> None:
        """지분 총량 상한 (0 = 무제한)"""
        self._only_owner(sender)
        if max_total_supply < 0:
            raise ZeroAmountError(f"지분 상한은 음수일 수 없습니다: {max_total_supply}")
        self.max_total_supply = max_total_supply
        logger.info("max_total_supply = %d", max_total_supply)

    def set_deposit_max(self, deposit0_max: int, deposit1_max: int, sender: str) -> None:
        self._only_owner(sender)
        if deposit0_max < 0 or deposit1_max < 0:
            raise ZeroAmountError(f"예치 상한은 음수일 수 없습니다: ({deposit0_max}, {deposit1_max})")
        self.deposit0_max = deposit0_max
        self.deposit1_max = deposit1_max
        logger.info("deposit max = (%d, %d)", deposit0_max, deposit1_max)

    def transfer_ownership(self, new_owner: str, sender: str) -> None:
        self._only_owner(sender)
        if not new_owner or new_owner == ZERO_ADDRESS:
            raise InvalidRecipientError("새 소유자가 zero address입니다")
        previous, self.owner = self.owner, new_owner
        self.events.append(OwnershipTransferred(previous, new_owner))
        logger.info("ownership: %s -> %s", previous, new_owner)
