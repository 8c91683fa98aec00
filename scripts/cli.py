"""Minimal CLI entry point for manual testing of the Graph sender."""

from __future__ import annotations

import argparse
import logging
import sys
from email.utils import parseaddr
from pathlib import Path

from graph_sender.config.settings import GraphSenderSettings
from graph_sender.core.models import Address, Attachment, OutboundEmail, Priority
from graph_sender.pipeline.sender import GraphSender


def setup_logging(level: str) -> None:
    """Configure logging with timestamp and module info."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_address(value: str) -> Address:
    """Accept ``Name <addr@example.com>`` or a bare address."""
    name, address = parseaddr(value)
    if not address or "@" not in address:
        raise argparse.ArgumentTypeError(f"invalid email address: {value!r}")
    return Address(email_address=address, name=name or None)


def _add_recipient_args(subparser: argparse.ArgumentParser) -> None:
    """Add repeatable --to, --cc, --bcc and --reply-to flags to a subparser."""
    for flag, dest in (
        ("--to", "to"),
        ("--cc", "cc"),
        ("--bcc", "bcc"),
        ("--reply-to", "reply_to"),
    ):
        subparser.add_argument(
            flag,
            dest=dest,
            type=parse_address,
            action="append",
            default=[],
            help=f"{flag[2:]} recipient (repeatable)",
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Graph Sender - Send an email through Microsoft Graph"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    send_parser = subparsers.add_parser("send", help="Send one email")
    send_parser.add_argument(
        "--from", dest="sender", type=parse_address, required=True, help="Sender mailbox"
    )
    _add_recipient_args(send_parser)
    send_parser.add_argument("--subject", "-s", required=True, help="Subject line")
    body_group = send_parser.add_mutually_exclusive_group(required=True)
    body_group.add_argument("--body", "-b", help="Body text")
    body_group.add_argument("--body-file", type=Path, help="Read the body from a file")
    send_parser.add_argument("--html", action="store_true", help="Treat the body as HTML")
    send_parser.add_argument(
        "--priority",
        choices=[p.value for p in Priority],
        default=Priority.NORMAL.value,
        help="Message priority",
    )
    send_parser.add_argument(
        "--attach",
        "-a",
        type=Path,
        action="append",
        default=[],
        help="File to attach (repeatable)",
    )
    return parser


def build_email(args: argparse.Namespace) -> OutboundEmail:
    """Turn parsed ``send`` arguments into an OutboundEmail."""
    body = args.body if args.body is not None else args.body_file.read_text(encoding="utf-8")
    return OutboundEmail(
        subject=args.subject,
        body=body,
        is_html=args.html,
        from_address=args.sender,
        to_addresses=tuple(args.to),
        cc_addresses=tuple(args.cc),
        bcc_addresses=tuple(args.bcc),
        reply_to_addresses=tuple(args.reply_to),
        priority=Priority(args.priority),
        attachments=tuple(Attachment.from_path(path) for path in args.attach),
    )


def main() -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    settings = GraphSenderSettings()
    setup_logging(settings.log_level)

    try:
        email = build_email(args)
        sender = GraphSender.from_settings(settings)
        result = sender.send(email)
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(1)

    if result.successful:
        print(f"Sent message {result.message_id}")
        return

    for failure in result.failures:
        print(f"Error ({failure.kind.value}): {failure.message}", file=sys.stderr)
    sys.exit(1)


if __name__ == "__main__":
    main()
