"""
Property-based tests with Hypothesis.
"""

from datetime import timezone

from hypothesis import given, settings, strategies as st

from pos_agent.receipt import render_receipt
from pos_stream.event_bus import EventBus
from pos_stream.frames import PrintEvent
from shared.print_eligibility import is_print_eligible
from tests.fakes import RecordingSubscriber

methods = st.sampled_from(["cash", "cod", "CASH", " Cod ", "upi", "card", "online", "", None])
statuses = st.sampled_from(["completed", "paid", "PAID", "pending", "failed", "", None])

money = st.one_of(
    st.integers(min_value=0, max_value=10_000),
    st.decimals(min_value=0, max_value=10_000, places=2).map(str),
    st.floats(min_value=0, max_value=10_000, allow_nan=False),
)

items = st.lists(
    st.fixed_dictionaries(
        {
            "productName": st.text(min_size=1, max_size=20),
            "quantity": st.integers(min_value=1, max_value=20),
            "unitPrice": money,
        },
        optional={"size": st.one_of(st.none(), st.text(max_size=10))},
    ),
    max_size=8,
)


class TestEligibilityLaw:
    @given(method=methods, status=statuses)
    def test_paid_is_always_eligible(self, method, status):
        assert is_print_eligible("paid", method, status) is True

    @given(method=methods, status=statuses)
    def test_created_needs_counter_settlement(self, method, status):
        expected = (
            (method or "").strip().lower() in {"cash", "cod"}
            and (status or "").strip().lower() in {"completed", "paid"}
        )
        assert is_print_eligible("created", method, status) is expected

    @given(transition=st.text(), method=methods, status=statuses)
    def test_unknown_transitions_never_print(self, transition, method, status):
        if transition in ("created", "paid"):
            return
        assert is_print_eligible(transition, method, status) is False


class TestReceiptProperties:
    @given(items=items, total=money)
    @settings(max_examples=50)
    def test_rendering_is_pure(self, items, total):
        order = {"orderNumber": "ORD-9", "items": items, "pricing": {"total": total}}

        first = render_receipt(order, tz=timezone.utc)
        second = render_receipt(order, tz=timezone.utc)

        assert first == second
        # Header, rule, order, date, blank, items, rule, total, blank, footer
        assert len(first.lines) == 9 + len(items)
        assert first.lines[-3].text.startswith("TOTAL: ₹")


class TestBusProperties:
    @given(
        subscribers=st.integers(min_value=0, max_value=5),
        order_ids=st.lists(st.integers(min_value=1, max_value=10_000), max_size=20),
    )
    @settings(max_examples=50)
    def test_each_subscriber_sees_every_event_once_in_order(self, subscribers, order_ids):
        bus = EventBus()
        subs = [RecordingSubscriber(str(n)) for n in range(subscribers)]
        for sub in subs:
            bus.subscribe(1, sub)

        for order_id in order_ids:
            bus.broadcast(1, PrintEvent.pos_order(1, "paid", order_id))

        for sub in subs:
            assert [e.order_id for e in sub.events] == [str(o) for o in order_ids]
