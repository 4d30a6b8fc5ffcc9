"""
S3 event forwarder.

Translates an S3 event notification ({"Records": [...]}) into FileRefs and
POSTs each one to the agent's /sync endpoint. Meant to run wherever the
notifications are delivered.

Entry points:
    # Serverless function handler, agent URL from AGENT_URL
    s6_agent.forwarder.handler

    # Command line, event JSON from a file or stdin
    AGENT_URL=http://agent:80/sync s6-forward event.json
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional
from urllib.parse import unquote_plus

import aiohttp
from pydantic import ValidationError

from core.errors.exceptions import ForwardingError
from core.logging.setup import setup_logging
from core.logging.utilities import extract_log_context, log_exception, log_with_context
from s6_agent.schemas.file_ref import FileRef

logger = logging.getLogger(__name__)

AGENT_URL_ENV = "AGENT_URL"
DEFAULT_FORWARD_TIMEOUT = 5.0


def file_refs_from_event(event: Dict[str, Any]) -> List[FileRef]:
    """
    Build one FileRef per record of an S3 event notification.

    Object keys arrive URL-encoded with '+' for spaces, so they are decoded
    before use.

    Raises:
        pydantic.ValidationError: If a record lacks region, bucket or key
    """
    refs = []
    for record in event.get("Records") or []:
        s3 = record.get("s3") or {}
        refs.append(
            FileRef(
                region=record.get("awsRegion", ""),
                bucket=(s3.get("bucket") or {}).get("name", ""),
                key=unquote_plus((s3.get("object") or {}).get("key", "")),
            )
        )
    return refs


async def forward_event(
    event: Dict[str, Any],
    agent_url: str,
    session: Optional[aiohttp.ClientSession] = None,
    timeout: float = DEFAULT_FORWARD_TIMEOUT,
) -> int:
    """
    POST every record of event to the agent, in order.

    Stops at the first record the agent does not accept.

    Args:
        event: S3 event notification
        agent_url: Full URL of the agent's /sync endpoint
        session: Optional aiohttp session (None = create one for this call)
        timeout: Total timeout per POST in seconds

    Returns:
        Number of records forwarded

    Raises:
        ForwardingError: Agent unreachable or answered non-200
    """
    if not agent_url:
        raise ForwardingError("Invalid agent URL")

    refs = file_refs_from_event(event)
    own_session = session is None
    client = session or aiohttp.ClientSession()

    try:
        for ref in refs:
            try:
                async with client.post(
                    agent_url,
                    json=ref.model_dump(),
                    timeout=aiohttp.ClientTimeout(total=timeout),
                ) as response:
                    status = response.status
                    reason = response.reason
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                raise ForwardingError(
                    "Failed sending to agent", cause=e, context=extract_log_context(ref)
                )

            if status != 200:
                raise ForwardingError(
                    f"Return from agent: {status} {reason}",
                    status_code=status,
                    context=extract_log_context(ref),
                )

            log_with_context(logger, logging.INFO, "OK", **extract_log_context(ref))
    finally:
        if own_session:
            await client.close()

    return len(refs)


async def handle_event(event: Dict[str, Any], agent_url: Optional[str] = None) -> int:
    """Forward event to agent_url, or to $AGENT_URL when not given."""
    if agent_url is None:
        agent_url = os.getenv(AGENT_URL_ENV, "")
    return await forward_event(event, agent_url)


def handler(event: Dict[str, Any], context: Any = None) -> int:
    """
    Serverless function entry point.

    Raises:
        ForwardingError: AGENT_URL unset, agent unreachable or non-200
    """
    return asyncio.run(handle_event(event))


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="s6-forward",
        description="Forward an S3 event notification to the sync agent",
    )

    parser.add_argument(
        "event",
        nargs="?",
        default="-",
        help="Path to the event JSON, '-' for stdin (default: -)",
    )

    parser.add_argument(
        "--agent-url",
        type=str,
        default=os.getenv(AGENT_URL_ENV, ""),
        help="Agent /sync URL (default: AGENT_URL env)",
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    """Command line entry point."""
    args = parse_args(argv)
    setup_logging(name="s6_agent.forwarder", json_format=False)

    try:
        if args.event == "-":
            event = json.load(sys.stdin)
        else:
            with open(args.event, "r") as f:
                event = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Failed reading event: {e}")
        sys.exit(1)

    if not isinstance(event, dict):
        logger.error("Event must be a JSON object")
        sys.exit(1)

    try:
        count = asyncio.run(handle_event(event, args.agent_url))
    except (ForwardingError, ValidationError) as e:
        log_exception(logger, e, "Failed forwarding event", include_traceback=False)
        sys.exit(1)

    logger.info(f"Forwarded {count} record(s)")


if __name__ == "__main__":
    main()
