"""
Admin layer for Hypervisor

접근 제어, 지연 소유권 이전, vault 팩토리
"""

from .timelock import TransferPhase, OwnerTransfer, OwnerTransferTimelock, can_transition
from .admin import Admin
from .factory import HypervisorFactory, sort_tokens, compute_hypervisor_address
