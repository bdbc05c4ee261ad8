from __future__ import annotations

import threading

import pytest

from shapecat.exceptions import FetchCancelledError, FetchDeadlineExceeded
from shapecat.expander import ShapeExpander
from shapecat.fetcher import CatalogFetcher, RequestContext, zone_name
from tests.conftest import FakeClock, FakeLister, fixed_shape, flex_shape

pytestmark = [pytest.mark.xdist_group("unit")]

AD1 = "Uocm:PHX-AD-1"
AD2 = "Uocm:PHX-AD-2"


def _fetcher(lister: FakeLister, domains=(AD1, AD2), page_size: int = 50) -> CatalogFetcher:
    return CatalogFetcher(
        lister,
        ShapeExpander(["1", "2"], ["8"]),
        compartment_id="ocid1.compartment.oc1..test",
        availability_domains=domains,
        page_size=page_size,
    )


class TestZoneName:
    def test_strips_tenancy_prefix(self):
        assert zone_name("Uocm:PHX-AD-1") == "PHX-AD-1"

    def test_plain_name_is_kept(self):
        assert zone_name("PHX-AD-1") == "PHX-AD-1"


class TestFetchZone:
    def test_single_page(self):
        lister = FakeLister(pages={AD1: [[fixed_shape("A"), fixed_shape("B")]]})

        shapes = _fetcher(lister).fetch_zone(AD1)

        assert [s.name for s in shapes] == ["A", "B"]
        assert lister.calls == [(AD1, "ocid1.compartment.oc1..test", None, 50)]

    def test_follows_pages_until_exhausted(self):
        lister = FakeLister(
            pages={AD1: [[fixed_shape("A")], [fixed_shape("B")], [fixed_shape("C")]]}
        )

        shapes = _fetcher(lister, page_size=1).fetch_zone(AD1)

        assert [s.name for s in shapes] == ["A", "B", "C"]
        assert [token for _, _, token, _ in lister.calls] == [None, "p1", "p2"]
        assert all(size == 1 for _, _, _, size in lister.calls)

    def test_empty_domain(self):
        lister = FakeLister(pages={AD1: [[]]})
        assert _fetcher(lister).fetch_zone(AD1) == ()

    def test_cancelled_before_first_page(self):
        lister = FakeLister(pages={AD1: [[fixed_shape()]]})
        cancelled = threading.Event()
        cancelled.set()

        with pytest.raises(FetchCancelledError):
            _fetcher(lister).fetch_zone(AD1, RequestContext(cancelled=cancelled))

        assert lister.calls == []

    def test_cancelled_between_pages(self):
        cancelled = threading.Event()

        class CancellingLister(FakeLister):
            def list(self, *args, **kwargs):
                page = super().list(*args, **kwargs)
                cancelled.set()
                return page

        lister = CancellingLister(pages={AD1: [[fixed_shape("A")], [fixed_shape("B")]]})

        with pytest.raises(FetchCancelledError):
            _fetcher(lister).fetch_zone(AD1, RequestContext(cancelled=cancelled))

        assert len(lister.calls) == 1

    def test_deadline_exceeded(self):
        clock = FakeClock()
        lister = FakeLister(pages={AD1: [[fixed_shape()]]})
        ctx = RequestContext.with_timeout(5, clock=clock)
        clock.advance(6)

        with pytest.raises(FetchDeadlineExceeded):
            _fetcher(lister).fetch_zone(AD1, ctx)

    def test_remaining_time(self):
        clock = FakeClock()
        ctx = RequestContext.with_timeout(5, clock=clock)
        clock.advance(2)
        assert ctx.remaining() == pytest.approx(3)
        assert RequestContext().remaining() is None


class TestFetchAll:
    def test_expands_per_zone(self):
        lister = FakeLister(
            pages={
                AD1: [[fixed_shape("VM.Standard2.1"), flex_shape("VM.Standard.E4.Flex")]],
                AD2: [[fixed_shape("VM.Standard2.1")]],
            }
        )

        per_zone = _fetcher(lister).fetch_all()

        assert list(per_zone) == ["PHX-AD-1", "PHX-AD-2"]
        assert [(e.name, e.vcpu) for e in per_zone["PHX-AD-1"]] == [
            ("VM.Standard2.1", 2),
            ("VM.Standard.E4.Flex", 2),
            ("VM.Standard.E4.Flex", 4),
        ]
        assert all(e.zones == ("PHX-AD-2",) for e in per_zone["PHX-AD-2"])

    def test_domains_sharing_a_zone_name_accumulate(self):
        lister = FakeLister(
            pages={"a:AD-1": [[fixed_shape("A")]], "b:AD-1": [[fixed_shape("B")]]}
        )

        per_zone = _fetcher(lister, domains=("a:AD-1", "b:AD-1")).fetch_all()

        assert [e.name for e in per_zone["AD-1"]] == ["A", "B"]

    def test_failure_in_any_zone_aborts(self):
        boom = RuntimeError("service unavailable")
        lister = FakeLister(pages={AD1: [[fixed_shape()]]}, errors={AD2: boom})

        with pytest.raises(RuntimeError) as exc:
            _fetcher(lister).fetch_all()

        assert exc.value is boom
