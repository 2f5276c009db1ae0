"""Tests for the visibility state machine."""
import pytest

from components import VisibilityState, VisibilityStateMachine
from errors import InvalidPayload, PinnedComponent
from registry import ComponentKind

ITEM = {
    "badge": "1",
    "imageUrl": "u",
    "originalPrice": "$150.000",
    "currentPrice": "$99.000",
    "discount": "34% OFF",
}
BRAND = {"brandName": "Nike", "followers": "+25 mil", "isVerified": True}


@pytest.fixture
def expired():
    return []


@pytest.fixture
def machine(scheduler, expired):
    return VisibilityStateMachine(scheduler, lambda kind, gen: expired.append((kind, gen)))


def fire(machine, expired):
    effects = []
    while expired:
        effects.extend(machine.expire(*expired.pop(0)))
    return effects


class TestInitialState:
    def test_one_instance_per_kind(self, machine):
        assert set(machine.instances) == set(ComponentKind)

    def test_timed_kinds_start_hidden(self, machine):
        assert machine["itemCard"].state == VisibilityState.Hidden
        assert machine["itemCard"].payload == {}

    def test_explore_button_pinned_visible(self, machine):
        assert machine["exploreButton"].state == VisibilityState.Visible

    def test_explore_button_rejects_show_and_hide(self, machine):
        with pytest.raises(PinnedComponent):
            machine.show("exploreButton", {}, 0)
        with pytest.raises(PinnedComponent):
            machine.hide("exploreButton")
        assert machine["exploreButton"].state == VisibilityState.Visible


class TestShow:
    def test_show_with_duration_arms_timer(self, machine, scheduler):
        effects = machine.show("itemCard", ITEM, 10000)

        inst = machine["itemCard"]
        assert [e.action for e in effects] == ["show"]
        assert inst.state == VisibilityState.Visible
        assert inst.expiry == pytest.approx(10.0)
        assert len(scheduler.live) == 1

    def test_show_indefinite_has_no_expiry(self, machine, scheduler):
        machine.show("brandFollowCard", BRAND, 0)

        assert machine["brandFollowCard"].expiry is None
        assert scheduler.live == []

    def test_invalid_payload_keeps_prior_state(self, machine):
        machine.show("brandFollowCard", BRAND, 0)

        with pytest.raises(InvalidPayload):
            machine.show("brandFollowCard", {"brandName": "Adidas"}, 5000)

        inst = machine["brandFollowCard"]
        assert inst.state == VisibilityState.Visible
        assert inst.payload["brandName"] == "Nike"
        assert inst.expiry is None

    def test_negative_duration_rejected(self, machine):
        with pytest.raises(InvalidPayload):
            machine.show("itemCard", ITEM, -1)
        assert machine["itemCard"].state == VisibilityState.Hidden

    def test_reshow_replaces_payload_and_cancels_old_timer(self, machine, scheduler, expired):
        machine.show("itemCard", ITEM, 10000)
        scheduler.advance(6000)
        machine.show("itemCard", {"currentPrice": "$1"}, 10000)

        assert machine["itemCard"].payload == {"currentPrice": "$1"}
        scheduler.advance(4000)
        assert fire(machine, expired) == []
        assert machine["itemCard"].state == VisibilityState.Visible

        scheduler.advance(6000)
        assert [e.action for e in fire(machine, expired)] == ["hide"]

    def test_show_without_data_reuses_stored_payload(self, machine):
        machine.update("itemCard", {"currentPrice": "$750.000"})

        effects = machine.show("itemCard", None, 0)

        assert effects[0].payload["currentPrice"] == "$750.000"

    def test_show_without_data_and_no_payload_is_invalid(self, machine):
        with pytest.raises(InvalidPayload):
            machine.show("brandFollowCard", None, 0)


class TestHide:
    def test_hide_hidden_is_noop(self, machine):
        assert machine.hide("rewardBadge") == []
        assert machine["rewardBadge"].state == VisibilityState.Hidden

    def test_hide_cancels_timer(self, machine, scheduler, expired):
        machine.show("itemCard", ITEM, 10000)

        effects = machine.hide("itemCard")

        assert [e.action for e in effects] == ["hide"]
        inst = machine["itemCard"]
        assert inst.state == VisibilityState.Hidden
        assert inst.expiry is None
        assert scheduler.live == []

    def test_hide_wins_over_queued_expiry(self, machine, scheduler, expired):
        machine.show("itemCard", ITEM, 1000)
        scheduler.advance(1000)
        assert len(expired) == 1

        machine.hide("itemCard")

        assert fire(machine, expired) == []

    def test_hide_keeps_payload_for_next_show(self, machine):
        machine.show("itemCard", ITEM, 0)
        machine.hide("itemCard")

        assert machine["itemCard"].payload["currentPrice"] == "$99.000"


class TestExpire:
    def test_timer_hides(self, machine, scheduler, expired):
        machine.show("rewardBadge", {"points": "+50"}, 3000)
        scheduler.advance(2000)
        assert expired == []

        scheduler.advance(1000)
        effects = fire(machine, expired)

        assert [e.action for e in effects] == ["hide"]
        assert machine["rewardBadge"].state == VisibilityState.Hidden
        assert machine["rewardBadge"].expiry is None


class TestUpdate:
    def test_update_hidden_changes_payload_only(self, machine):
        machine.show("itemCard", ITEM, 0)
        machine.hide("itemCard")

        effects = machine.update("itemCard", {"currentPrice": "$750.000"})

        assert effects == []
        assert machine["itemCard"].state == VisibilityState.Hidden
        assert machine["itemCard"].payload["currentPrice"] == "$750.000"
        assert machine["itemCard"].payload["discount"] == "34% OFF"

    def test_update_visible_keeps_state_and_expiry(self, machine):
        machine.show("itemCard", ITEM, 10000)
        expiry = machine["itemCard"].expiry

        effects = machine.update("itemCard", {"discount": "50% OFF"})

        assert [e.action for e in effects] == ["update"]
        assert machine["itemCard"].state == VisibilityState.Visible
        assert machine["itemCard"].expiry == expiry

    def test_update_validates_merged_result(self, machine):
        machine.show("brandFollowCard", BRAND, 0)

        with pytest.raises(InvalidPayload):
            machine.update("brandFollowCard", {"isVerified": "no"})

        assert machine["brandFollowCard"].payload["isVerified"] is True

    def test_partial_update_on_empty_payload_missing_required(self, machine):
        with pytest.raises(InvalidPayload):
            machine.update("brandFollowCard", {"followers": "10"})

        assert machine["brandFollowCard"].payload == {}


class TestReset:
    def test_reset_cancels_timers_and_hides(self, machine, scheduler, expired):
        machine.show("itemCard", ITEM, 10000)
        machine.show("brandFollowCard", BRAND, 0)

        machine.reset()

        assert scheduler.live == []
        assert machine["itemCard"].state == VisibilityState.Hidden
        assert machine["brandFollowCard"].payload == {}
        assert machine["exploreButton"].state == VisibilityState.Visible

    def test_snapshot_reports_remaining(self, machine, scheduler):
        machine.show("itemCard", ITEM, 10000)
        scheduler.advance(2500)

        snap = machine.snapshot()

        assert snap["itemCard"]["state"] == "Visible"
        assert snap["itemCard"]["remaining_ms"] == 7500
        assert snap["rewardBadge"]["remaining_ms"] is None
