"""Tests for mailspool.parser."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from mailspool.parser import MailFileParser

from tests.conftest import PREAMBLE, build_message


@pytest.fixture
def parser() -> MailFileParser:
    return MailFileParser()


class TestMailFileParser:
    def test_parse_plain_message(self, parser: MailFileParser):
        record = parser.parse(build_message().encode("utf-8"), "010124103015123.eml")
        assert record.from_address == "sender@example.com"
        assert record.to_address == "recipient@example.com"
        assert record.subject == "Test Subject"
        assert record.received_at == datetime(2024, 1, 1, 10, 30, 15, tzinfo=UTC)
        assert record.source_path is None

    def test_preamble_dropped(self, parser: MailFileParser):
        record = parser.parse(build_message().encode("utf-8"), "x.eml")
        assert record.raw_content.startswith("From: sender@example.com\n")
        for line in PREAMBLE:
            assert line not in record.raw_content

    def test_trailing_newline_preserved(self, parser: MailFileParser):
        record = parser.parse(build_message(body="bye").encode("utf-8"), "x.eml")
        assert record.raw_content.endswith("\nbye\n")

    def test_crlf_rejoined_with_newline(self, parser: MailFileParser):
        raw = "\r\n".join([*PREAMBLE, "Subject: crlf", "", "body"]).encode("utf-8")
        record = parser.parse(raw, "x.eml")
        assert record.raw_content == "Subject: crlf\n\nbody"
        assert record.subject == "crlf"

    def test_headers_in_preamble_are_ignored(self, parser: MailFileParser):
        preamble = ["Subject: from preamble", "x", "y", "z"]
        raw = build_message(subject=None, preamble=preamble).encode("utf-8")
        assert parser.parse(raw, "x.eml").subject == ""

    def test_short_file_yields_empty_record(self, parser: MailFileParser):
        record = parser.parse(b"one\ntwo\nthree\n", "message.eml")
        assert record.raw_content == ""
        assert record.subject == ""
        assert record.from_address == ""
        assert record.to_address == ""
        assert record.received_at.tzinfo is not None

    def test_invalid_utf8_replaced(self, parser: MailFileParser):
        raw = build_message(subject="café").encode("utf-8") + b"\xff\xfe trailing"
        record = parser.parse(raw, "x.eml")
        assert record.subject == "café"
        assert "�" in record.raw_content

    def test_date_falls_back_to_file_name(self, parser: MailFileParser):
        raw = build_message(date="broken").encode("utf-8")
        record = parser.parse(raw, "150624235959999.eml")
        assert record.received_at == datetime(2024, 6, 15, 23, 59, 59, 999000).astimezone()

    def test_date_falls_back_to_clock(self):
        fixed = datetime(2021, 5, 5, tzinfo=UTC)
        parser = MailFileParser(clock=lambda: fixed)
        record = parser.parse(build_message(date=None).encode("utf-8"), "message.eml")
        assert record.received_at == fixed

    def test_custom_preamble_length(self):
        parser = MailFileParser(preamble_lines=0)
        record = parser.parse(b"Subject: no preamble\n", "x.eml")
        assert record.subject == "no preamble"
        assert record.raw_content == "Subject: no preamble\n"
