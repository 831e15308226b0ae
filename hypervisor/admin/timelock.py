"""
Owner Transfer Timelock - 지연 소유권 이전 상태 머신

vault 주소별로 하나의 레코드를 유지합니다:
    IDLE → PROPOSED → FINALIZABLE → IDLE
- propose: IDLE에서만 가능, eligible_at = now + delay
- PROPOSED는 now >= eligible_at 이 되면 FINALIZABLE로 읽힘
- cancel: PROPOSED / FINALIZABLE → IDLE
- finalize: FINALIZABLE에서만 가능, 새 소유자 반환 후 IDLE
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from ..config import settings
from ..errors import TimelockError

logger = logging.getLogger(__name__)


class TransferPhase(str, Enum):
    IDLE = "IDLE"
    PROPOSED = "PROPOSED"
    FINALIZABLE = "FINALIZABLE"


# 허용된 전이: PROPOSED → FINALIZABLE은 시간 경과로만 일어난다
_TRANSITIONS = {
    TransferPhase.IDLE: frozenset({TransferPhase.PROPOSED}),
    TransferPhase.PROPOSED: frozenset({TransferPhase.FINALIZABLE, TransferPhase.IDLE}),
    TransferPhase.FINALIZABLE: frozenset({TransferPhase.IDLE}),
}


@dataclass(frozen=True)
class OwnerTransfer:
    """vault 하나의 소유권 이전 레코드"""
    phase: TransferPhase = TransferPhase.IDLE
    new_owner: Optional[str] = None
    proposed_at: Optional[int] = None
    eligible_at: Optional[int] = None


_IDLE = OwnerTransfer()


def can_transition(src: TransferPhase, dst: TransferPhase) -> bool:
    return dst in _TRANSITIONS[src]


class OwnerTransferTimelock:
    """vault 주소를 키로 하는 소유권 이전 타임락"""

    def __init__(self, delay: Optional[int] = None):
        """
        Args:
            delay: 제안 후 확정까지 최소 대기 시간 (초). None이면 settings 값
        """
        self.delay = settings.OWNER_TRANSFER_DELAY if delay is None else delay
        if self.delay < 0:
            raise ValueError(f"delay는 음수일 수 없습니다: {self.delay}")
        self._records: Dict[str, OwnerTransfer] = {}

    def state_of(self, vault: str, now: int) -> OwnerTransfer:
        record = self._records.get(vault, _IDLE)
        if record.phase == TransferPhase.PROPOSED and now >= record.eligible_at:
            return OwnerTransfer(
                TransferPhase.FINALIZABLE, record.new_owner, record.proposed_at, record.eligible_at
            )
        return record

    def _require(self, vault: str, now: int, dst: TransferPhase) -> OwnerTransfer:
        current = self.state_of(vault, now)
        if not can_transition(current.phase, dst):
            raise TimelockError(f"{vault}: {current.phase.value} → {dst.value} 전이 불가")
        return current

    def propose(self, vault: str, new_owner: str, now: int) -> OwnerTransfer:
        self._require(vault, now, TransferPhase.PROPOSED)
        record = OwnerTransfer(TransferPhase.PROPOSED, new_owner, now, now + self.delay)
        self._records[vault] = record
        logger.info("owner transfer proposed: %s -> %s (eligible at %d)", vault, new_owner, record.eligible_at)
        return record

    def cancel(self, vault: str, now: int) -> None:
        self._require(vault, now, TransferPhase.IDLE)
        self._records.pop(vault, None)
        logger.info("owner transfer cancelled: %s", vault)

    def finalize(self, vault: str, now: int) -> str:
        current = self.state_of(vault, now)
        if current.phase != TransferPhase.FINALIZABLE:
            raise TimelockError(f"{vault}: {current.phase.value} 상태에서는 확정할 수 없습니다")
        self._records.pop(vault, None)
        return current.new_owner
