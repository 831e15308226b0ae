"""
Pool layer for Hypervisor

vault가 의존하는 집중 유동성 풀 인터페이스와 메모리 내 참조 구현
"""

from .adapter import PoolAdapter, Slot0, PositionInfo, SettlementContext, SettlementCallbacks
from .simulated import SimulatedPool, TickInfo, Position, Observation
