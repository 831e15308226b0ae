"""
Transaction - 원자적 실행과 재진입 방지

vault의 deposit / withdraw / rebalance는 하나의 분할 불가능한 작업으로 실행됩니다.
- atomic(): 참여자(vault, 풀, 토큰 원장)의 상태를 스냅샷하고, 예외 발생 시 모두 복원
- NonReentrantLock: vault당 하나의 진입 플래그. 보호된 작업 안에서 다시 보호된 작업을
  호출하면 거부합니다. 풀의 settlement 콜백은 보호 대상이 아니므로 그대로 실행됩니다.
"""

import copy
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Tuple

from .errors import ReentrancyError

logger = logging.getLogger(__name__)


class Checkpointable:
    """스냅샷/복원이 가능한 상태 보유 객체

    하위 클래스는 _checkpoint_fields에 변경 가능한 속성 이름을 나열합니다.
    """

    _checkpoint_fields: Tuple[str, ...] = ()

    def snapshot(self) -> Dict[str, Any]:
        return {name: copy.deepcopy(getattr(self, name)) for name in self._checkpoint_fields}

    def restore(self, state: Dict[str, Any]) -> None:
        for name, value in state.items():
            setattr(self, name, value)


@contextmanager
def atomic(*participants: Checkpointable) -> Iterator[None]:
    """all-or-nothing 실행 블록

    블록 안에서 예외가 발생하면 모든 참여자를 진입 시점 상태로 되돌리고
    예외를 그대로 다시 발생시킵니다.
    """
    states = [participant.snapshot() for participant in participants]
    try:
        yield
    except Exception as exc:
        for participant, state in zip(participants, states):
            participant.restore(state)
        logger.warning("작업 롤백: %s: %s", type(exc).__name__, exc)
        raise


class NonReentrantLock:
    """vault당 하나의 상호 배제 플래그"""

    def __init__(self):
        self._entered = False

    @property
    def entered(self) -> bool:
        return self._entered

    def __enter__(self) -> "NonReentrantLock":
        if self._entered:
            raise ReentrancyError("ReentrancyGuard: reentrant call")
        self._entered = True
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._entered = False
