#!/usr/bin/env python3
"""
CLI for running dashboard actions without the HTTP layer.

Reads credentials from the environment (or .env), runs one action and
prints the JSON payload the dashboard would receive.
"""

import argparse
import asyncio
import json
import sys
from typing import Any, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from src.config import Settings, get_settings
from src.exceptions import DashboardAPIError
from src.logging.config import configure_logging
from src.routes import bitly, mailchimp, ticket_tailor

DISPATCHERS = {
    "bitly": bitly.dispatcher,
    "mailchimp": mailchimp.dispatcher,
    "ticket-tailor": ticket_tailor.dispatcher,
}


def build_payload(args: argparse.Namespace) -> dict[str, Any]:
    """
    Build the request body an HTTP caller would send.

    Args:
        args: Parsed command-line arguments

    Returns:
        Body with the action and every option that was given
    """
    payload: dict[str, Any] = {"action": args.action}
    options = {
        "days": args.days,
        "weeks": args.weeks,
        "limit": args.limit,
        "startDate": args.start_date,
        "eventId": args.event_id,
    }
    payload.update({key: value for key, value in options.items() if value is not None})
    return payload


async def cmd_run(
    integration: str,
    payload: dict[str, Any],
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> int:
    """
    Run one action and print its result.

    Args:
        integration: Key of DISPATCHERS
        payload: Request body
        settings: Settings to use (read from the environment when None)
        transport: Optional httpx transport for the vendor client

    Returns:
        Process exit code: 0 on success, 1 on a handled error
    """
    dispatcher = DISPATCHERS[integration]
    try:
        result = await dispatcher.run(settings or get_settings(), payload, transport)
    except DashboardAPIError as exc:
        print(json.dumps(exc.to_dict(), indent=2))
        return 1
    except PydanticValidationError as exc:
        body = {
            "error": "Invalid request",
            "validationErrors": [
                {"field": ".".join(str(loc) for loc in error["loc"]), "message": error["msg"]}
                for error in exc.errors()
            ],
        }
        print(json.dumps(body, indent=2))
        return 1

    print(json.dumps(result.model_dump(by_alias=True, mode="json"), indent=2))
    return 0


def main() -> None:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Run a marketing dashboard action against the vendor APIs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  run_action.py bitly getRecruitmentLinks --days 7
  run_action.py mailchimp getLeadStats --weeks 8
  run_action.py ticket-tailor getEventDetails --event-id ev_123
""",
    )
    parser.add_argument("integration", choices=sorted(DISPATCHERS), help="Integration")
    parser.add_argument("action", type=str, help="Action name, e.g. getEvents")
    parser.add_argument("--days", type=int, help="Bitly metrics window in days")
    parser.add_argument("--weeks", type=int, help="Mailchimp weekly buckets")
    parser.add_argument("--limit", type=int, help="Mailchimp campaigns to return")
    parser.add_argument("--start-date", type=str, help="Ticket Tailor earliest event start")
    parser.add_argument("--event-id", type=str, help="Ticket Tailor event id")

    args = parser.parse_args()

    configure_logging()
    exit_code = asyncio.run(cmd_run(args.integration, build_payload(args)))
    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
