"""
Vault layer for Hypervisor

지분 회계, 리밸런스, settlement 콜백
"""

from .shares import ShareLedger
from .events import DepositEvent, WithdrawEvent, RebalanceEvent, OwnershipTransferred
from .hypervisor import Hypervisor, TickRange, PositionAmounts
