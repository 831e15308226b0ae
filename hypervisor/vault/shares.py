"""
Share Ledger - vault 지분 장부

지분은 vault 전체 자산 가치에 대한 비례 청구권입니다.
deposit에서 발행되고 withdraw에서 소각되며, 그 외 경로로는 생성되지 않습니다.
전체 ERC20 인터페이스는 제공하지 않습니다 (mint / burn / balance / total supply).
"""

from dataclasses import dataclass, field
from typing import Dict

from ..errors import InsufficientSharesError


@dataclass
class ShareLedger:
    """지분 총량과 보유자별 잔고

    불변식: sum(balances.values()) == total_supply
    """
    total_supply: int = 0
    balances: Dict[str, int] = field(default_factory=dict)

    def balance_of(self, account: str) -> int:
        return self.balances.get(account, 0)

    def mint(self, to: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"음수 지분 발행: {amount}")
        self.balances[to] = self.balance_of(to) + amount
        self.total_supply += amount

    def burn(self, account: str, amount: int) -> None:
        balance = self.balance_of(account)
        if balance < amount:
            raise InsufficientSharesError(f"{account} 지분 {balance} < 소각 {amount}")
        remaining = balance - amount
        if remaining:
            self.balances[account] = remaining
        else:
            self.balances.pop(account, None)
        self.total_supply -= amount

    def holders(self) -> Dict[str, int]:
        return dict(self.balances)

    def check_invariant(self) -> bool:
        return sum(self.balances.values()) == self.total_supply
