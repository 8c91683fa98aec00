"""Tests for CLI argument parsing and the send command."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

import scripts.cli as cli_module
from graph_sender.core.models import Address, ErrorKind, Priority, SendResult


def _parse_args(argv: list[str]) -> argparse.Namespace:
    return cli_module.build_parser().parse_args(argv)


class TestParseAddress:
    def test_bare_address(self) -> None:
        assert cli_module.parse_address("a@example.com") == Address("a@example.com")

    def test_named_address(self) -> None:
        assert cli_module.parse_address("Alice Smith <alice@example.com>") == Address(
            "alice@example.com", "Alice Smith"
        )

    def test_rejects_garbage(self) -> None:
        with pytest.raises(argparse.ArgumentTypeError):
            cli_module.parse_address("not an address")


class TestSendArgs:
    def test_minimal(self) -> None:
        args = _parse_args(
            ["send", "--from", "me@contoso.com", "--to", "a@example.com", "-s", "Hi", "-b", "Body"]
        )
        assert args.command == "send"
        assert args.sender == Address("me@contoso.com")
        assert args.to == [Address("a@example.com")]
        assert args.cc == []
        assert args.html is False
        assert args.priority == "normal"
        assert args.attach == []

    def test_repeatable_flags(self) -> None:
        args = _parse_args(
            [
                "send", "--from", "me@contoso.com",
                "--to", "a@example.com", "--to", "B <b@example.com>",
                "--cc", "c@example.com", "--bcc", "d@example.com",
                "--reply-to", "r@example.com",
                "-s", "Hi", "-b", "<p>x</p>", "--html", "--priority", "high",
                "-a", "one.pdf", "-a", "two.pdf",
            ]
        )
        assert [a.email_address for a in args.to] == ["a@example.com", "b@example.com"]
        assert args.reply_to == [Address("r@example.com")]
        assert args.html is True
        assert args.priority == "high"
        assert args.attach == [Path("one.pdf"), Path("two.pdf")]

    def test_body_required(self) -> None:
        with pytest.raises(SystemExit):
            _parse_args(["send", "--from", "me@contoso.com", "-s", "Hi"])

    def test_body_and_body_file_exclusive(self) -> None:
        with pytest.raises(SystemExit):
            _parse_args(
                ["send", "--from", "me@contoso.com", "-s", "Hi", "-b", "x", "--body-file", "b.txt"]
            )


class TestBuildEmail:
    def test_builds_outbound_email(self, tmp_path: Path) -> None:
        attachment = tmp_path / "data.csv"
        attachment.write_text("a,b\n1,2\n")
        body_file = tmp_path / "body.html"
        body_file.write_text("<p>Report</p>", encoding="utf-8")

        args = _parse_args(
            [
                "send", "--from", "Me <me@contoso.com>", "--to", "a@example.com",
                "-s", "Report", "--body-file", str(body_file), "--html",
                "--priority", "low", "-a", str(attachment),
            ]
        )
        email = cli_module.build_email(args)

        assert email.subject == "Report"
        assert email.body == "<p>Report</p>"
        assert email.is_html is True
        assert email.from_address == Address("me@contoso.com", "Me")
        assert email.to_addresses == (Address("a@example.com"),)
        assert email.priority is Priority.LOW
        assert len(email.attachments) == 1
        assert email.attachments[0].filename == "data.csv"
        assert email.attachments[0].data.read() == b"a,b\n1,2\n"


class TestMain:
    ARGV = ["cli.py", "send", "--from", "me@contoso.com", "--to", "a@example.com", "-s", "Hi", "-b", "x"]

    def test_success_prints_message_id(self, capsys: pytest.CaptureFixture[str]) -> None:
        sender = MagicMock()
        sender.send.return_value = SendResult.sent("AAMk-1")

        with (
            patch.object(sys, "argv", self.ARGV),
            patch.object(cli_module, "setup_logging"),
            patch.object(cli_module.GraphSender, "from_settings", return_value=sender),
        ):
            cli_module.main()

        assert "Sent message AAMk-1" in capsys.readouterr().out

    def test_failure_exits_one(self, capsys: pytest.CaptureFixture[str]) -> None:
        sender = MagicMock()
        sender.send.return_value = SendResult.failed(ErrorKind.REMOTE_CALL, "Access is denied.")

        with (
            patch.object(sys, "argv", self.ARGV),
            patch.object(cli_module, "setup_logging"),
            patch.object(cli_module.GraphSender, "from_settings", return_value=sender),
            pytest.raises(SystemExit) as exc_info,
        ):
            cli_module.main()

        assert exc_info.value.code == 1
        assert "Error (remote_call): Access is denied." in capsys.readouterr().err

    def test_no_command_prints_help(self) -> None:
        with patch.object(sys, "argv", ["cli.py"]), pytest.raises(SystemExit) as exc_info:
            cli_module.main()
        assert exc_info.value.code == 1
