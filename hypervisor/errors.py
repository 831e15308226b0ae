"""
Hypervisor 오류 정의

세 가지 계층으로 구분:
- PreconditionError: 상태 변경 전에 거부되는 입력/권한 오류
- InvariantViolation: 상태 변경 후 검사에서 발견된 불변식 위반 (전체 롤백)
- ExternalCallError: 풀/토큰 등 외부 협력자의 실패 (전체 롤백)
"""


class HypervisorError(Exception):
    """Hypervisor 최상위 오류"""
    pass


# === 전제조건 위반 ===

class PreconditionError(HypervisorError):
    """상태 변경 전에 거부된 호출"""
    pass


class ZeroAmountError(PreconditionError):
    """0 또는 음수 수량"""
    pass


class DepositCapError(PreconditionError):
    """입금 한도 초과"""
    pass


class InvalidRecipientError(PreconditionError):
    """유효하지 않은 수령 주소"""
    pass


class UnauthorizedError(PreconditionError):
    """권한 없는 호출자"""
    pass


class InvalidRangeError(PreconditionError):
    """정렬되지 않았거나 뒤집힌 틱 범위"""
    pass


class InsufficientSharesError(PreconditionError):
    """보유량보다 많은 지분 소각"""
    pass


class IdenticalTokensError(PreconditionError):
    """token0 == token1"""
    pass


class InvalidFeeTierError(PreconditionError):
    """지원하지 않는 수수료 티어"""
    pass


class HypervisorExistsError(PreconditionError):
    """같은 (페어, 수수료) 조합의 vault가 이미 존재"""
    pass


class TimelockError(PreconditionError):
    """허용되지 않은 소유권 이전 상태 전이"""
    pass


# === 불변식 위반 ===

class InvariantViolation(HypervisorError):
    """상태 변경 후 검사에서 발견된 위반"""
    pass


class MaxTotalSupplyExceeded(InvariantViolation):
    """총 지분 공급 한도 초과"""
    pass


# === 외부 협력자 실패 ===

class ExternalCallError(HypervisorError):
    """외부 협력자 호출 실패"""
    pass


class PoolError(ExternalCallError):
    """풀이 mint/burn/swap 등을 거부"""

    def __init__(self, code: str, message: str = ""):
        self.code = code
        super().__init__(f"{code}: {message}" if message else code)


class TransferError(ExternalCallError):
    """토큰 이체 실패 (잔고/허용량 부족)"""
    pass


class ReentrancyError(HypervisorError):
    """보호된 작업에 대한 중첩 진입"""
    pass
