"""
Vault events

온체인 이벤트에 해당하는 기록. vault.events 리스트에 순서대로 쌓이며
오프체인 수수료/성과 추적(analytics)에 사용됩니다.
"""

from dataclasses import dataclass, asdict


@dataclass(frozen=True)
class DepositEvent:
    sender: str
    to: str
    shares: int
    amount0: int
    amount1: int

    def to_dict(self) -> dict:
        return {"event": "Deposit", **asdict(self)}


@dataclass(frozen=True)
class WithdrawEvent:
    sender: str
    to: str
    shares: int
    amount0: int
    amount1: int

    def to_dict(self) -> dict:
        return {"event": "Withdraw", **asdict(self)}


@dataclass(frozen=True)
class RebalanceEvent:
    """리밸런스 스냅샷

    - tick: 리밸런스 시점 TWAP 틱
    - total_amount0/1: 포지션 해체 + 수수료 지급 후 vault 유휴 잔고
    - fee_amount0/1: 수확한 수수료 (분배 전)
    - total_supply: 지분 총량
    """
    tick: int
    total_amount0: int
    total_amount1: int
    fee_amount0: int
    fee_amount1: int
    total_supply: int

    def to_dict(self) -> dict:
        return {"event": "Rebalance", **asdict(self)}


@dataclass(frozen=True)
class OwnershipTransferred:
    previous_owner: str
    new_owner: str

    def to_dict(self) -> dict:
        return {"event": "OwnershipTransferred", **asdict(self)}
