from __future__ import annotations

from datetime import UTC, datetime

import pytest

from cashping.core.domain import PaymentRecord
from cashping.notifiers.templates import placeholder_values, render_email_html

pytestmark = pytest.mark.unit


def _record(**overrides) -> PaymentRecord:
    values = dict(
        event_type="checkout.session.completed",
        id="cs_1",
        created_at=datetime(2024, 5, 1, tzinfo=UTC),
        currency="EUR",
        amount_minor=4200,
        amount_readable="EUR 42.00",
        order_no="cs_1",
        product_name="Pro plan",
        quantity=3,
        payment_method="card",
        email="buyer@example.com",
    )
    values.update(overrides)
    return PaymentRecord(**values)


def test_default_template_contains_every_field():
    html = render_email_html(_record())

    for expected in ("Pro plan", "EUR 42.00", "cs_1", "card", "buyer@example.com"):
        assert expected in html
    assert "{{" not in html


def test_unknown_placeholders_render_empty():
    assert render_email_html(_record(), "[{{ NOPE }}]{{QTY}}") == "[]3"


def test_values_are_html_escaped():
    html = render_email_html(_record(product_name="<script>x</script>"), "{{PRODUCT_NAME}}")

    assert html == "&lt;script&gt;x&lt;/script&gt;"


def test_missing_email_renders_as_blank():
    assert placeholder_values(_record(email=None))["CUSTOMER_EMAIL"] == ""
