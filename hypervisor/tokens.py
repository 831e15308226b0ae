"""
Token Ledger - ERC20 잔고/허용량 원장

vault와 풀이 공유하는 토큰 잔고. 실제 체인의 토큰 컨트랙트를 대신하는
외부 협력자로, vault는 transfer / transfer_from 만 사용합니다.
"""

from typing import Dict, Tuple

from .constants import UINT256_MAX
from .errors import TransferError
from .transaction import Checkpointable


class TokenLedger(Checkpointable):
    """여러 토큰의 잔고와 허용량을 보관하는 원장

    사용법:
        ledger = TokenLedger()
        ledger.mint("0xaaa...", "alice", 10**18)
        ledger.approve("0xaaa...", "alice", vault.address, UINT256_MAX)
    """

    _checkpoint_fields = ("_balances", "_allowances")

    def __init__(self):
        self._balances: Dict[str, Dict[str, int]] = {}
        self._allowances: Dict[Tuple[str, str, str], int] = {}

    def balance_of(self, token: str, account: str) -> int:
        return self._balances.get(token, {}).get(account, 0)

    def allowance(self, token: str, owner: str, spender: str) -> int:
        return self._allowances.get((token, owner, spender), 0)

    def mint(self, token: str, to: str, amount: int) -> None:
        """잔고 발행 (테스트/데모 자금 공급용)"""
        if amount < 0:
            raise TransferError(f"음수 발행: {amount}")
        balances = self._balances.setdefault(token, {})
        balances[to] = balances.get(to, 0) + amount

    def approve(self, token: str, owner: str, spender: str, amount: int) -> None:
        if amount < 0:
            raise TransferError(f"음수 허용량: {amount}")
        self._allowances[(token, owner, spender)] = amount

    def transfer(self, token: str, sender: str, recipient: str, amount: int) -> None:
        """sender → recipient 이체

        Raises:
            TransferError: 잔고 부족 또는 음수 수량
        """
        if amount < 0:
            raise TransferError(f"음수 이체: {amount}")
        balances = self._balances.setdefault(token, {})
        available = balances.get(sender, 0)
        if available < amount:
            raise TransferError(
                f"잔고 부족: {sender} 보유 {available}, 필요 {amount} (token {token})"
            )
        balances[sender] = available - amount
        balances[recipient] = balances.get(recipient, 0) + amount

    def transfer_from(self, token: str, spender: str, owner: str, recipient: str, amount: int) -> None:
        """spender가 owner의 토큰을 recipient에게 이체 (허용량 차감)

        허용량이 UINT256_MAX면 무한 허용으로 보고 차감하지 않습니다.
        """
        allowed = self.allowance(token, owner, spender)
        if allowed < amount:
            raise TransferError(
                f"허용량 부족: {owner} → {spender} 허용 {allowed}, 필요 {amount} (token {token})"
            )
        self.transfer(token, owner, recipient, amount)
        if allowed != UINT256_MAX:
            self._allowances[(token, owner, spender)] = allowed - amount
