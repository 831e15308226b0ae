"""
Admin - vault 접근 제어 계층

두 역할을 분리합니다:
- advisor: 리밸런스만 트리거
- admin: 예치 상한/지분 상한 설정, 지연 소유권 이전, 역할 이전, 토큰 회수

Admin 자신이 관리하는 vault의 owner가 되어 호출을 대신 전달합니다.
"""

import logging
import time
from typing import Callable, Optional

from ..errors import UnauthorizedError
from ..tokens import TokenLedger
from ..vault.events import RebalanceEvent
from ..vault.hypervisor import Hypervisor
from .timelock import OwnerTransfer, OwnerTransferTimelock

logger = logging.getLogger(__name__)


class Admin:
    """advisor / admin 역할을 가진 vault 소유자

    사용법:
        admin = Admin("0xadmin-contract", admin="alice", advisor="bob", ledger=ledger)
        vault.transfer_ownership(admin.address, sender=vault.owner)
        admin.rebalance(vault, -600, 600, 0, 60, "0xfee", 0, sender="bob")
    """

    def __init__(
        self,
        address: str,
        admin: str,
        advisor: str,
        ledger: TokenLedger,
        clock: Optional[Callable[[], int]] = None,
        transfer_delay: Optional[int] = None
    ):
        self.address = address
        self.admin = admin
        self.advisor = advisor
        self.ledger = ledger
        self.clock = clock or (lambda: int(time.time()))
        self.timelock = OwnerTransferTimelock(transfer_delay)

    def _only_admin(self, sender: str) -> None:
        if sender != self.admin:
            raise UnauthorizedError(f"admin만 호출할 수 있습니다: {sender}")

    def _only_advisor(self, sender: str) -> None:
        if sender != self.advisor:
            raise UnauthorizedError(f"advisor만 호출할 수 있습니다: {sender}")

    def rebalance(
        self,
        hypervisor: Hypervisor,
        base_lower: int,
        base_upper: int,
        limit_lower: int,
        limit_upper: int,
        fee_recipient: str,
        swap_quantity: int,
        sender: str
    ) -> RebalanceEvent:
        self._only_advisor(sender)
        return hypervisor.rebalance(
            base_lower, base_upper, limit_lower, limit_upper,
            fee_recipient, swap_quantity, sender=self.address
        )

    def set_deposit_max(self, hypervisor: Hypervisor, deposit0_max: int, deposit1_max: int, sender: str) -> None:
        self._only_admin(sender)
        hypervisor.set_deposit_max(deposit0_max, deposit1_max, sender=self.address)

    def set_max_total_supply(self, hypervisor: Hypervisor, max_total_supply: int, sender: str) -> None:
        self._only_admin(sender)
        hypervisor.set_max_total_supply(max_total_supply, sender=self.address)

    # === 지연 소유권 이전 ===

    def propose_owner_transfer(self, hypervisor: Hypervisor, new_owner: str, sender: str) -> OwnerTransfer:
        self._only_admin(sender)
        return self.timelock.propose(hypervisor.address, new_owner, self.clock())

    def cancel_owner_transfer(self, hypervisor: Hypervisor, sender: str) -> None:
        self._only_admin(sender)
        self.timelock.cancel(hypervisor.address, self.clock())

    def finalize_owner_transfer(self, hypervisor: Hypervisor, sender: str) -> str:
        self._only_admin(sender)
        new_owner = self.timelock.finalize(hypervisor.address, self.clock())
        hypervisor.transfer_ownership(new_owner, sender=self.address)
        return new_owner

    def owner_transfer_state(self, hypervisor: Hypervisor) -> OwnerTransfer:
        return self.timelock.state_of(hypervisor.address, self.clock())

    # === 역할 / 자산 ===

    def transfer_admin(self, new_admin: str, sender: str) -> None:
        self._only_admin(sender)
        logger.info("admin: %s -> %s", self.admin, new_admin)
        self.admin = new_admin

    def transfer_advisor(self, new_advisor: str, sender: str) -> None:
        self._only_admin(sender)
        logger.info("advisor: %s -> %s", self.advisor, new_advisor)
        self.advisor = new_advisor

    def rescue_tokens(self, token: str, recipient: str, sender: str) -> int:
        """Admin 주소로 잘못 보내진 토큰 전량 회수"""
        self._only_admin(sender)
        amount = self.ledger.balance_of(token, self.address)
        if amount > 0:
            self.ledger.transfer(token, self.address, recipient, amount)
        logger.info("rescue: %d of %s -> %s", amount, token, recipient)
        return amount
