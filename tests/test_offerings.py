from __future__ import annotations

import pytest
from prometheus_client import CollectorRegistry

from shapecat.metrics import CatalogMetrics
from shapecat.offerings import OfferingGenerator, supports_preemptible
from shapecat.pricing import StaticPricing
from shapecat.types import CatalogEntry

pytestmark = [pytest.mark.xdist_group("unit")]


class StubTracker:
    def __init__(self, unavailable: set[tuple[str, str, str]] | None = None) -> None:
        self.unavailable = unavailable or set()
        self.calls: list[tuple[str, str, str]] = []

    def is_unavailable(self, shape, zone, capacity_type):
        self.calls.append((shape, zone, capacity_type))
        return (shape, zone, capacity_type) in self.unavailable


class FailingPricing:
    def price(self, entry):
        raise ConnectionError("pricing service unreachable")


def _entry(name: str = "VM.Standard.E4.Flex", zones=("AD-1", "AD-2")) -> CatalogEntry:
    return CatalogEntry(
        name=name, vcpu=4, memory_gb=32, max_vnics=2, max_bandwidth_gbps=2, ocpus=2, zones=tuple(zones)
    )


def _generator(tracker=None, pricing=None, metrics=None, allow=("VM.",), exclude=("VM.Standard.E2.1.Micro",)):
    return OfferingGenerator(
        pricing=pricing or StaticPricing({"VM.Standard.E4.Flex": 0.2, "BM.Standard3.64": 4.0}),
        unavailable=tracker or StubTracker(),
        preemptible_shapes=allow,
        preemptible_exclude_shapes=exclude,
        metrics=metrics,
    )


class TestSupportsPreemptible:
    def test_allowed_prefix(self):
        assert supports_preemptible("VM.Standard.E4.Flex", ["VM.Standard"], [])

    def test_no_allowed_prefix(self):
        assert not supports_preemptible("BM.Standard3.64", ["VM."], [])

    def test_excluded_prefix(self):
        assert not supports_preemptible(
            "VM.Standard.E2.1.Micro", ["VM.Standard"], ["VM.Standard.E2.1.Micro"]
        )

    def test_empty_exclude_token_excludes_nothing(self):
        assert supports_preemptible("VM.Standard2.1", ["VM."], [""])

    def test_empty_allow_list_allows_nothing(self):
        assert not supports_preemptible("VM.Standard2.1", [""], [])


class TestGenerate:
    def test_one_offering_per_zone_and_capacity_type(self):
        offerings = _generator().generate(_entry(), {"AD-1", "AD-2"})

        assert [(o.zone, o.capacity_type) for o in offerings] == [
            ("AD-1", "on-demand"),
            ("AD-1", "preemptible"),
            ("AD-2", "on-demand"),
            ("AD-2", "preemptible"),
        ]
        assert all(o.shape == "VM.Standard.E4.Flex" for o in offerings)
        assert all(o.key == _entry().key for o in offerings)

    def test_preemptible_is_half_price(self):
        offerings = _generator().generate(_entry(), ["AD-1"])
        on_demand, preemptible = offerings

        assert on_demand.price == pytest.approx(0.2)
        assert preemptible.price == pytest.approx(0.1)
        assert on_demand.available and preemptible.available

    def test_ineligible_shape_preemptible_forced_unavailable(self):
        tracker = StubTracker()
        entry = _entry("BM.Standard3.64", zones=("AD-1",))

        on_demand, preemptible = _generator(tracker=tracker).generate(entry, ["AD-1"])

        assert on_demand.available
        assert on_demand.price == pytest.approx(4.0)
        assert not preemptible.available
        assert preemptible.price == pytest.approx(4.0)

    def test_ineligible_ignores_tracker_for_preemptible(self):
        # Tracker only flags on-demand; preemptible is off for BM regardless
        tracker = StubTracker(unavailable={("BM.Standard3.64", "AD-1", "on-demand")})
        entry = _entry("BM.Standard3.64", zones=("AD-1",))

        on_demand, preemptible = _generator(tracker=tracker).generate(entry, ["AD-1"])

        assert not on_demand.available
        assert not preemptible.available

    def test_tracker_verdict_applies_per_offering(self):
        tracker = StubTracker(
            unavailable={
                ("VM.Standard.E4.Flex", "AD-2", "on-demand"),
                ("VM.Standard.E4.Flex", "AD-1", "preemptible"),
            }
        )
        offerings = _generator(tracker=tracker).generate(_entry(), ["AD-1", "AD-2"])

        assert [o.available for o in offerings] == [True, False, False, True]
        assert len(tracker.calls) == 4

    def test_excluded_shape(self):
        entry = _entry("VM.Standard.E2.1.Micro", zones=("AD-1",))
        pricing = StaticPricing({"VM.Standard.E2.1.Micro": 0.01})

        _, preemptible = _generator(pricing=pricing).generate(entry, ["AD-1"])

        assert not preemptible.available

    def test_no_zones(self):
        assert _generator().generate(_entry(), []) == ()

    def test_pricing_errors_surface(self):
        with pytest.raises(ConnectionError):
            _generator(pricing=FailingPricing()).generate(_entry(), ["AD-1"])

    def test_metrics_recorded(self):
        registry = CollectorRegistry()
        metrics = CatalogMetrics(registry)
        entry = _entry("BM.Standard3.64", zones=("AD-1",))

        _generator(metrics=metrics).generate(entry, ["AD-1"])

        available = "shapecat_instance_type_offering_available"
        price = "shapecat_instance_type_offering_price_estimate"
        labels = {"instance_type": "BM.Standard3.64", "zone": "AD-1"}
        assert registry.get_sample_value(available, {**labels, "capacity_type": "on-demand"}) == 1
        assert registry.get_sample_value(available, {**labels, "capacity_type": "preemptible"}) == 0
        assert registry.get_sample_value(
            price,
            {"instance_type": "BM.Standard3.64_2_32", "capacity_type": "on-demand", "zone": "AD-1"},
        ) == pytest.approx(4.0)
