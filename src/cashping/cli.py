"""Command line entry point: run the relay or exercise a running one."""

from __future__ import annotations

import argparse
import json
import sys
import time
from pathlib import Path
from typing import Any

import httpx

from cashping.gateway.security import SIGNATURE_HEADER, build_signature_header


def sample_event(event_type: str) -> dict[str, Any]:
    """A minimal payment intent event, enough to drive every notifier."""

    now = int(time.time())
    return {
        "id": f"evt_test_{now}",
        "type": event_type,
        "created": now,
        "data": {
            "object": {
                "id": f"pi_test_{now}",
                "object": "payment_intent",
                "amount": 1999,
                "currency": "usd",
                "created": now,
                "receipt_email": "customer@example.com",
                "payment_method_types": ["card"],
                "metadata": {"product_name": "Test product", "quantity": "1"},
            }
        },
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cashping",
        description="Stripe payment-success webhook relay.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the relay HTTP server.")
    serve.add_argument("--host", default="0.0.0.0", help="Bind address (default: %(default)s).")
    serve.add_argument("--port", type=int, default=8787, help="Bind port (default: %(default)s).")

    sign = subparsers.add_parser(
        "sign", help="Print a Stripe-Signature header for a request body file."
    )
    sign.add_argument("body", type=Path, help="File containing the exact request body.")
    sign.add_argument("--secret", required=True, help="Webhook signing secret.")
    sign.add_argument(
        "--timestamp",
        type=int,
        default=None,
        help="Unix timestamp to sign with (default: now).",
    )

    send_test = subparsers.add_parser(
        "send-test", help="POST a signed sample event to a running relay."
    )
    send_test.add_argument(
        "--url",
        default="http://localhost:8787/stripe-webhook",
        help="Webhook endpoint (default: %(default)s).",
    )
    send_test.add_argument("--secret", required=True, help="Webhook signing secret.")
    send_test.add_argument(
        "--type",
        dest="event_type",
        default="payment_intent.succeeded",
        help="Event type to send (default: %(default)s).",
    )
    send_test.add_argument(
        "--timeout",
        type=float,
        default=15.0,
        help="HTTP timeout in seconds (default: %(default)s).",
    )
    return parser


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    from cashping.core.telemetry import start_metrics_server
    from cashping.gateway.dependencies import get_settings

    telemetry = get_settings().telemetry
    start_metrics_server(telemetry.metrics_host, telemetry.metrics_port)
    uvicorn.run(
        "cashping.gateway.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=False,
    )
    return 0


def _sign(args: argparse.Namespace) -> int:
    body = args.body.read_bytes()
    print(build_signature_header(args.secret, body, timestamp=args.timestamp))
    return 0


def _send_test(args: argparse.Namespace) -> int:
    body = json.dumps(sample_event(args.event_type)).encode("utf-8")
    headers = {
        SIGNATURE_HEADER: build_signature_header(args.secret, body),
        "content-type": "application/json",
    }
    try:
        response = httpx.post(args.url, content=body, headers=headers, timeout=args.timeout)
    except httpx.HTTPError as exc:
        print(f"! request failed: {exc}", file=sys.stderr)
        return 1

    print(f"{response.status_code} {response.text}")
    return 0 if response.is_success else 1


_COMMANDS = {"serve": _serve, "sign": _sign, "send-test": _send_test}


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return _COMMANDS[args.command](args)


if __name__ == "__main__":
    raise SystemExit(main())
