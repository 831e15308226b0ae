"""
Admin 접근 제어와 소유권 이전 타임락 테스트
"""

import pytest

from ..admin.admin import Admin
from ..admin.timelock import OwnerTransferTimelock, TransferPhase, can_transition
from ..errors import TimelockError, UnauthorizedError
from .conftest import ALICE, FEE_RECIPIENT, OWNER, TOKEN0

ADMIN_ADDRESS = "admin-contract"
ADMIN = "admin"
ADVISOR = "advisor"
DELAY = 86400


class FakeClock:
    def __init__(self, now: int = 1_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def admin(vault, ledger, clock):
    admin = Admin(ADMIN_ADDRESS, ADMIN, ADVISOR, ledger, clock=clock, transfer_delay=DELAY)
    vault.transfer_ownership(ADMIN_ADDRESS, sender=OWNER)
    return admin


class TestTimelockStateMachine:

    def test_transition_table(self):
        assert can_transition(TransferPhase.IDLE, TransferPhase.PROPOSED)
        assert can_transition(TransferPhase.PROPOSED, TransferPhase.IDLE)
        assert can_transition(TransferPhase.FINALIZABLE, TransferPhase.IDLE)
        assert not can_transition(TransferPhase.IDLE, TransferPhase.FINALIZABLE)
        assert not can_transition(TransferPhase.FINALIZABLE, TransferPhase.PROPOSED)

    def test_becomes_finalizable_after_delay(self):
        timelock = OwnerTransferTimelock(delay=100)
        record = timelock.propose("v", "new", now=1000)
        assert record.eligible_at == 1100
        assert timelock.state_of("v", 1099).phase == TransferPhase.PROPOSED
        assert timelock.state_of("v", 1100).phase == TransferPhase.FINALIZABLE

    def test_finalize_too_early(self):
        timelock = OwnerTransferTimelock(delay=100)
        timelock.propose("v", "new", now=1000)
        with pytest.raises(TimelockError):
            timelock.finalize("v", now=1050)

    def test_finalize_returns_to_idle(self):
        timelock = OwnerTransferTimelock(delay=100)
        timelock.propose("v", "new", now=1000)
        assert timelock.finalize("v", now=2000) == "new"
        assert timelock.state_of("v", 2000).phase == TransferPhase.IDLE

    def test_double_propose_rejected(self):
        timelock = OwnerTransferTimelock(delay=100)
        timelock.propose("v", "new", now=1000)
        with pytest.raises(TimelockError):
            timelock.propose("v", "other", now=1001)

    def test_cancel_from_idle_rejected(self):
        with pytest.raises(TimelockError):
            OwnerTransferTimelock(delay=100).cancel("v", now=0)

    def test_records_are_per_vault(self):
        timelock = OwnerTransferTimelock(delay=100)
        timelock.propose("v1", "new", now=1000)
        assert timelock.state_of("v2", 5000).phase == TransferPhase.IDLE

    def test_negative_delay(self):
        with pytest.raises(ValueError):
            OwnerTransferTimelock(delay=-1)


class TestAdminRoles:

    def test_advisor_rebalances(self, admin, vault):
        vault.deposit(10**18, 10**18, ALICE, ALICE)
        event = admin.rebalance(vault, -600, 600, 60, 1200, FEE_RECIPIENT, 0, sender=ADVISOR)
        assert event.total_amount0 == 10**18
        assert vault.get_base_position().liquidity > 0

    def test_admin_cannot_rebalance(self, admin, vault):
        with pytest.raises(UnauthorizedError):
            admin.rebalance(vault, -600, 600, 60, 1200, FEE_RECIPIENT, 0, sender=ADMIN)

    def test_previous_owner_locked_out(self, admin, vault):
        with pytest.raises(UnauthorizedError):
            vault.rebalance(-600, 600, 60, 1200, FEE_RECIPIENT, 0, OWNER)

    def test_admin_setters(self, admin, vault):
        admin.set_deposit_max(vault, 10**20, 10**21, sender=ADMIN)
        admin.set_max_total_supply(vault, 10**22, sender=ADMIN)
        assert (vault.deposit0_max, vault.deposit1_max) == (10**20, 10**21)
        assert vault.max_total_supply == 10**22

    def test_advisor_cannot_set(self, admin, vault):
        with pytest.raises(UnauthorizedError):
            admin.set_max_total_supply(vault, 1, sender=ADVISOR)

    def test_role_transfer(self, admin):
        admin.transfer_advisor("new-advisor", sender=ADMIN)
        admin.transfer_admin("new-admin", sender=ADMIN)
        assert admin.advisor == "new-advisor"
        assert admin.admin == "new-admin"
        with pytest.raises(UnauthorizedError):
            admin.transfer_admin("x", sender=ADMIN)

    def test_rescue_tokens(self, admin, ledger):
        ledger.mint(TOKEN0, ADMIN_ADDRESS, 777)
        assert admin.rescue_tokens(TOKEN0, "treasury", sender=ADMIN) == 777
        assert ledger.balance_of(TOKEN0, "treasury") == 777
        assert ledger.balance_of(TOKEN0, ADMIN_ADDRESS) == 0


class TestDelayedOwnerTransfer:

    def test_full_flow(self, admin, vault, clock):
        record = admin.propose_owner_transfer(vault, "new-owner", sender=ADMIN)
        assert record.phase == TransferPhase.PROPOSED

        clock.now += DELAY - 1
        with pytest.raises(TimelockError):
            admin.finalize_owner_transfer(vault, sender=ADMIN)
        assert vault.owner == ADMIN_ADDRESS

        clock.now += 1
        assert admin.owner_transfer_state(vault).phase == TransferPhase.FINALIZABLE
        assert admin.finalize_owner_transfer(vault, sender=ADMIN) == "new-owner"
        assert vault.owner == "new-owner"
        assert admin.owner_transfer_state(vault).phase == TransferPhase.IDLE

    def test_cancel(self, admin, vault, clock):
        admin.propose_owner_transfer(vault, "new-owner", sender=ADMIN)
        admin.cancel_owner_transfer(vault, sender=ADMIN)
        clock.now += DELAY
        with pytest.raises(TimelockError):
            admin.finalize_owner_transfer(vault, sender=ADMIN)
        assert vault.owner == ADMIN_ADDRESS

    def test_only_admin_proposes(self, admin, vault):
        with pytest.raises(UnauthorizedError):
            admin.propose_owner_transfer(vault, "mallory", sender=ADVISOR)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
