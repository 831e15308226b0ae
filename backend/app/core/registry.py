"""
Vault Registry

Seeds the in-memory token ledger, pool and vault served by the API.
The service holds a single registry; tests call reset() for a clean state.
"""
import logging

from hypervisor.constants import UINT256_MAX
from hypervisor.math.tick_math import get_sqrt_ratio_at_tick
from hypervisor.pool.simulated import SimulatedPool
from hypervisor.tokens import TokenLedger
from hypervisor.vault.hypervisor import Hypervisor

from app.config import settings

logger = logging.getLogger(__name__)


class VaultRegistry:
    """Ledger + pool + vault triple backing the API"""

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self.ledger = TokenLedger()
        self.pool = SimulatedPool(
            self.ledger,
            settings.TOKEN0,
            settings.TOKEN1,
            settings.POOL_FEE,
            get_sqrt_ratio_at_tick(settings.POOL_INITIAL_TICK),
        )
        self.vault = Hypervisor(
            settings.VAULT_ADDRESS,
            self.pool,
            self.ledger,
            owner=settings.VAULT_OWNER,
        )
        # TWAP window must be covered by pool history before the first deposit
        self.pool.advance_time(self.vault.twap_interval)

        for account in settings.DEMO_ACCOUNTS:
            for token in (self.pool.token0, self.pool.token1):
                self.ledger.mint(token, account, settings.DEMO_BALANCE)
                self.ledger.approve(token, account, self.vault.address, UINT256_MAX)

        logger.info(
            "seeded vault %s on pool %s (tick %d), funded %s",
            self.vault.address, self.pool.address, self.pool.tick, ", ".join(settings.DEMO_ACCOUNTS)
        )


registry = VaultRegistry()


def get_registry() -> VaultRegistry:
    return registry
