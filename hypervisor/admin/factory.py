"""
Hypervisor Factory - (토큰 쌍, 수수료 티어)당 하나의 vault 배포

- 토큰 쌍을 정렬해 token0 < token1 로 고정
- 수수료 티어에서 tick spacing 결정
- 양방향 순서로 인덱싱하여 어느 순서로도 조회 가능
- 풀이 없으면 주입된 pool_factory로 생성
"""

import hashlib
import logging
from typing import Callable, Dict, List, Optional, Tuple

from ..constants import TICK_SPACINGS, ZERO_ADDRESS
from ..errors import (
    HypervisorExistsError,
    IdenticalTokensError,
    InvalidFeeTierError,
    InvalidRecipientError,
    UnauthorizedError,
)
from ..pool.adapter import PoolAdapter
from ..tokens import TokenLedger
from ..vault.hypervisor import Hypervisor

logger = logging.getLogger(__name__)

# (token0, token1, fee) -> 풀
PoolFactory = Callable[[str, str, int], PoolAdapter]


def sort_tokens(token_a: str, token_b: str) -> Tuple[str, str]:
    if token_a == token_b:
        raise IdenticalTokensError(f"동일한 토큰: {token_a}")
    token0, token1 = (token_a, token_b) if token_a.lower() < token_b.lower() else (token_b, token_a)
    if token0 == ZERO_ADDRESS:
        raise InvalidRecipientError("zero address 토큰")
    return token0, token1


def compute_hypervisor_address(token0: str, token1: str, fee: int, tick_spacing: int) -> str:
    """(token0, token1, fee, tick_spacing)로부터 결정적인 vault 주소"""
    salt = f"{token0.lower()}:{token1.lower()}:{fee}:{tick_spacing}".encode()
    return "0x" + hashlib.sha256(salt).hexdigest()[:40]


class HypervisorFactory:
    """vault 배포 및 인덱스"""

    def __init__(self, ledger: TokenLedger, owner: str, pool_factory: PoolFactory):
        self.ledger = ledger
        self.owner = owner
        self.pool_factory = pool_factory
        self.pools: Dict[Tuple[str, str, int], PoolAdapter] = {}
        self._hypervisors: Dict[Tuple[str, str, int], Hypervisor] = {}
        self.all_hypervisors: List[Hypervisor] = []

    def create_hypervisor(self, token_a: str, token_b: str, fee: int, sender: str) -> Hypervisor:
        """새 vault 배포

        Raises:
            UnauthorizedError: owner가 아닌 호출자
            IdenticalTokensError / InvalidRecipientError: 잘못된 토큰 쌍
            InvalidFeeTierError: 지원하지 않는 수수료 티어
            HypervisorExistsError: 이미 존재하는 (쌍, 수수료)
        """
        if sender != self.owner:
            raise UnauthorizedError(f"factory owner만 호출할 수 있습니다: {sender}")
        token0, token1 = sort_tokens(token_a, token_b)
        tick_spacing = TICK_SPACINGS.get(fee)
        if not tick_spacing:
            raise InvalidFeeTierError(f"지원하지 않는 수수료 티어: {fee}")
        if (token0, token1, fee) in self._hypervisors:
            raise HypervisorExistsError(f"이미 존재: {token0}/{token1} fee {fee}")

        pool = self.pools.get((token0, token1, fee))
        if pool is None:
            pool = self.pool_factory(token0, token1, fee)
            self.pools[(token0, token1, fee)] = pool

        hypervisor = Hypervisor(
            compute_hypervisor_address(token0, token1, fee, tick_spacing),
            pool,
            self.ledger,
            owner=self.owner,
        )
        self._hypervisors[(token0, token1, fee)] = hypervisor
        self._hypervisors[(token1, token0, fee)] = hypervisor
        self.all_hypervisors.append(hypervisor)

        logger.info(
            "hypervisor created: %s/%s fee %d -> %s (#%d)",
            token0, token1, fee, hypervisor.address, len(self.all_hypervisors)
        )
        return hypervisor

    def get_hypervisor(self, token_a: str, token_b: str, fee: int) -> Optional[Hypervisor]:
        return self._hypervisors.get((token_a, token_b, fee))

    def all_hypervisors_length(self) -> int:
        return len(self.all_hypervisors)
