"""
Hypervisor 설정

환경변수(.env 포함)에서 vault 기본 파라미터를 로드합니다.
"""
import os

from dotenv import load_dotenv

from .constants import DEFAULT_TWAP_INTERVAL

load_dotenv()


class Settings:
    """Hypervisor settings"""

    # currentTick() TWAP 조회 구간 (초)
    TWAP_INTERVAL: int = int(os.getenv("HYPERVISOR_TWAP_INTERVAL", DEFAULT_TWAP_INTERVAL))

    # 소유권 이전 제안 후 확정까지 대기 시간 (초)
    OWNER_TRANSFER_DELAY: int = int(os.getenv("HYPERVISOR_OWNER_TRANSFER_DELAY", 86400))

    LOG_LEVEL: str = os.getenv("HYPERVISOR_LOG_LEVEL", "INFO")


settings = Settings()
