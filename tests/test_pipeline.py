import base64
from datetime import datetime, timedelta, timezone

import pytest

from mailtext.email_parser.addresses import extract_email_and_name, is_no_reply
from mailtext.email_parser.errors import TransferDecodeFailed
from mailtext.processing.pipeline import (
    BAD_FORM,
    NOREPLY,
    OLD,
    Email,
    decode_raw_message,
    email_to_dict,
    internal_date_to_datetime,
    process_message,
    screen_email,
)
from mailtext.utils.config import ParserConfig

RAW = (
    b"From: \"Jane Doe\" <jane@example.com>\r\n"
    b"Subject: =?UTF-8?B?UXVhcnRlcmx5IHJlcG9ydA==?=\r\n"
    b"Message-ID: <r1@example.com>\r\n"
    b"\r\n"
    b"Please review the attached numbers.\r\n"
)


def make_email(**overrides) -> Email:
    fields = dict(
        id="m1",
        thread_id="t1",
        sender="Jane <jane@example.com>",
        sender_name="Jane",
        sender_address="jane@example.com",
        subject="Hi",
        body="Short body",
    )
    fields.update(overrides)
    return Email(**fields)


def test_extract_email_and_name():
    assert extract_email_and_name('"Jane Doe" <jane@example.com>') == ("jane@example.com", "Jane Doe")
    assert extract_email_and_name("bob@example.org") == ("bob@example.org", "")
    assert extract_email_and_name("Undisclosed recipients") == ("", "")
    assert extract_email_and_name("") == ("", "")


def test_is_no_reply():
    assert is_no_reply("No-Reply <no-reply@shop.example>")
    assert is_no_reply("noreply@bank.example")
    assert not is_no_reply("Jane <jane@example.com>")


def test_decode_raw_message_without_padding():
    encoded = base64.urlsafe_b64encode(RAW + b"??>>").rstrip(b"=").decode("ascii")
    assert decode_raw_message(encoded) == RAW + b"??>>"


def test_decode_raw_message_rejects_garbage():
    with pytest.raises(TransferDecodeFailed):
        decode_raw_message("this is not base64url!")


def test_internal_date_to_datetime():
    assert internal_date_to_datetime(1700000000000) == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)


def test_process_message_builds_record():
    email = process_message(RAW, message_id="m1", thread_id="t1", snippet="Please review", internal_date=1700000000000)
    assert email.id == "m1"
    assert email.thread_id == "t1"
    assert email.sender == '"Jane Doe" <jane@example.com>'
    assert email.sender_name == "Jane Doe"
    assert email.sender_address == "jane@example.com"
    assert email.subject == "Quarterly report"
    assert email.body == "Please review the attached numbers."
    assert email.message_id == "<r1@example.com>"
    assert email.date.year == 2023

    as_dict = email_to_dict(email)
    assert as_dict["date"] == "2023-11-14T22:13:20+00:00"
    assert as_dict["subject"] == "Quarterly report"


def test_process_message_without_from_or_subject():
    email = process_message(b"\r\nbody only")
    assert email.sender == ""
    assert email.sender_address == ""
    assert email.subject == ""
    assert email.date is None


def test_screen_email_reasons():
    now = datetime(2024, 1, 31, tzinfo=timezone.utc)
    assert screen_email(make_email(), now=now) is None
    assert screen_email(make_email(body=""), now=now) == BAD_FORM
    assert screen_email(make_email(body="x" * 3001), now=now) == BAD_FORM
    assert screen_email(make_email(sender="noreply@shop.example"), now=now) == NOREPLY

    old = make_email(date=now - timedelta(days=30))
    assert screen_email(old, now=now) is None  # age check disabled by default
    assert screen_email(old, now=now, config=ParserConfig(LOOKBACK_DAYS=7)) == OLD
    assert screen_email(make_email(date=None), now=now, config=ParserConfig(LOOKBACK_DAYS=7)) is None


def test_screen_email_checks_age_first():
    now = datetime(2024, 1, 31, tzinfo=timezone.utc)
    empty_and_old = make_email(body="", date=now - timedelta(days=30))
    assert screen_email(empty_and_old, now=now, config=ParserConfig(LOOKBACK_DAYS=7)) == OLD

    noreply_and_old = make_email(sender="noreply@shop.example", date=now - timedelta(days=30))
    assert screen_email(noreply_and_old, now=now, config=ParserConfig(LOOKBACK_DAYS=7)) == OLD


def test_screen_email_measures_body_in_utf8_bytes():
    now = datetime(2024, 1, 31, tzinfo=timezone.utc)
    # 1500 characters, 4500 bytes
    assert screen_email(make_email(body="日" * 1500), now=now) == BAD_FORM
    assert screen_email(make_email(body="x" * 3000), now=now) is None
