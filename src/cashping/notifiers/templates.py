"""HTML email rendering for payment notifications."""

from __future__ import annotations

import html
import re

from cashping.core.domain import PaymentRecord

_PLACEHOLDER = re.compile(r"\{\{\s*([A-Z0-9_]+)\s*\}\}")


def placeholder_values(record: PaymentRecord) -> dict[str, str]:
    return {
        "PRODUCT_NAME": record.product_name,
        "QTY": str(record.quantity),
        "TOTAL": record.amount_readable,
        "ORDER_NO": record.order_no,
        "PAID_WITH": record.payment_method,
        "CUSTOMER_EMAIL": record.email or "",
    }


def render_email_html(record: PaymentRecord, template: str | None = None) -> str:
    """Substitute ``{{KEY}}`` placeholders; unknown keys render as empty text.

    Values are HTML-escaped since product names and emails come from
    customer-controlled checkout metadata.
    """

    values = placeholder_values(record)
    return _PLACEHOLDER.sub(
        lambda match: html.escape(values.get(match.group(1), "")),
        template or DEFAULT_EMAIL_HTML,
    )


DEFAULT_EMAIL_HTML = """<!doctype html>
<html lang="en">
<head>
  <meta charset="UTF-8" />
  <meta name="color-scheme" content="light dark">
  <meta name="supported-color-schemes" content="light dark">
  <title>CashPing - payment received</title>
  <style>
    body { font-family: -apple-system,BlinkMacSystemFont,Segoe UI,Roboto,Helvetica,Arial,sans-serif; background:#f6f7fb; margin:0; padding:24px; }
    .card { max-width:600px; margin:0 auto; background:#fff; border:1px solid #ebebeb; border-radius:12px; overflow:hidden; }
    .bd { padding:24px; }
    .row { display:flex; justify-content:space-between; margin:8px 0; color:#555; }
    .row .k { color:#777; }
    .total { font-size:28px; font-weight:800; color:#222; display:flex; justify-content:space-between; padding:16px 0; border-top:1px solid #eff1f4; border-bottom:1px solid #eff1f4; margin:16px 0; }
    .ft { padding:16px 24px; border-top:1px solid #dfe1e4; font-size:12px; color:#999; }
    @media (prefers-color-scheme: dark) {
      body { background:#0b0b0c; }
      .card { background:#111214; border-color:#2a2c30; }
      .bd .row { color:#c9c9c9; }
      .total { color:#e9e9e9; border-color:#2a2c30; }
      .ft { border-color:#2a2c30; color:#8a8a8a; }
    }
    code { background:#f2f3f5; padding:2px 6px; border-radius:6px; }
  </style>
</head>
<body>
  <div class="card">
    <div class="bd">
      <h2 style="margin:0 0 8px 0;">Order paid</h2>
      <div class="row"><span class="k">Product</span><span>{{PRODUCT_NAME}} &times; {{QTY}}</span></div>
      <div class="row"><span class="k">Order no.</span><span><code>{{ORDER_NO}}</code></span></div>
      <div class="row"><span class="k">Paid with</span><span>{{PAID_WITH}}</span></div>
      <div class="row"><span class="k">Customer email</span><span>{{CUSTOMER_EMAIL}}</span></div>
      <div class="total"><span>Total</span><span>{{TOTAL}}</span></div>
    </div>
    <div class="ft">
      This message was sent automatically. Please do not reply.
    </div>
  </div>
</body>
</html>
"""
