import base64

import pytest

from mailtext.email_parser.errors import (
    MalformedHeaderBlock,
    MissingBoundary,
    NestingTooDeep,
    UnsupportedCharset,
)
from mailtext.email_parser.parser import parse_email


def build_email(headers, body: bytes) -> bytes:
    head = "".join(f"{name}: {value}\r\n" for name, value in headers)
    return head.encode("utf-8") + b"\r\n" + body


def test_end_to_end_simple_message():
    raw = build_email(
        [("From", "A <a@x.com>"), ("Subject", "=?UTF-8?Q?Hello=3F?="), ("Content-Transfer-Encoding", "7bit")],
        b"Hi there.",
    )
    body, headers = parse_email(raw)
    assert headers["From"] == ["A <a@x.com>"]
    assert headers["Subject"] == ["Hello?"]
    assert body == "Hi there."


def test_plain_utf8_body_is_verbatim_with_lf_and_trimmed():
    raw = build_email(
        [("Content-Type", 'text/plain; charset="utf-8"')],
        "\r\n  Line one\r\nLíne two\r\n\r\nLine four  \r\n\r\n".encode("utf-8"),
    )
    body, _ = parse_email(raw)
    assert body == "Line one\nLíne two\n\nLine four"


def test_base64_body_round_trips():
    original = "Grüße aus Berlin.\nZweite Zeile."
    encoded = base64.b64encode(original.encode("utf-8"))
    wrapped = b"\r\n".join(encoded[i:i + 16] for i in range(0, len(encoded), 16))
    raw = build_email(
        [("Content-Type", "text/plain; charset=utf-8"), ("Content-Transfer-Encoding", "base64")],
        wrapped + b"\r\n",
    )
    body, _ = parse_email(raw)
    assert body == original
    assert base64.b64encode(body.encode("utf-8")) == encoded


def test_alternative_prefers_first_plain_part():
    raw = build_email(
        [("Content-Type", 'multipart/alternative; boundary="000000000000abc"')],
        b"--000000000000abc\r\n"
        b"Content-Type: text/plain; charset=\"UTF-8\"\r\n"
        b"\r\n"
        b"See you at 5.\r\n"
        b"\r\n"
        b"--000000000000abc\r\n"
        b"Content-Type: text/html; charset=\"UTF-8\"\r\n"
        b"\r\n"
        b"<div dir=\"ltr\">See you at <b>5</b>.</div>\r\n"
        b"\r\n"
        b"--000000000000abc--\r\n",
    )
    body, _ = parse_email(raw)
    assert body == "See you at 5."


def test_mixed_falls_back_to_next_sibling():
    raw = build_email(
        [("MIME-Version", "1.0"), ("Content-Type", "multipart/mixed; boundary=XX")],
        b"This is a message with multiple parts in MIME format.\r\n"
        b"--XX\r\n"
        b"Content-Type: text/plain\r\n"
        b"\r\n"
        b"\r\n"
        b"--XX\r\n"
        b"Content-Type: text/plain; charset=iso-8859-1\r\n"
        b"Content-Transfer-Encoding: quoted-printable\r\n"
        b"\r\n"
        b"Voil=E0 le rapport.\r\n"
        b"--XX--\r\n",
    )
    body, _ = parse_email(raw)
    assert body == "Voilà le rapport."


def test_nested_related_inside_mixed():
    raw = build_email(
        [("Content-Type", 'multipart/mixed; boundary="outer"')],
        b"--outer\r\n"
        b"Content-Type: multipart/related; boundary=\"rel\"\r\n"
        b"\r\n"
        b"--rel\r\n"
        b"Content-Type: multipart/alternative; boundary=\"alt\"\r\n"
        b"\r\n"
        b"--alt\r\n"
        b"Content-Type: text/plain; charset=utf-8\r\n"
        b"Content-Transfer-Encoding: base64\r\n"
        b"\r\n"
        + base64.b64encode("Ünïcode inside".encode("utf-8")) + b"\r\n"
        b"--alt--\r\n"
        b"--rel\r\n"
        b"Content-Type: image/png\r\n"
        b"\r\n"
        b"PNG\r\n"
        b"--rel--\r\n"
        b"--outer\r\n"
        b"Content-Type: application/pdf\r\n"
        b"\r\n"
        b"%PDF-1.4\r\n"
        b"--outer--\r\n",
    )
    body, _ = parse_email(raw)
    assert body == "Ünïcode inside"


def test_missing_content_type_defaults_to_plain_utf8():
    raw = build_email([("From", "someone@example.com")], "naïve text\r\n".encode("utf-8"))
    body, headers = parse_email(raw)
    assert body == "naïve text"
    assert "Content-Type" not in headers


def test_multipart_without_boundary_fails():
    raw = build_email([("Content-Type", "multipart/alternative")], b"--x\r\n\r\nhi\r\n--x--\r\n")
    with pytest.raises(MissingBoundary):
        parse_email(raw)


def test_missing_blank_line_fails():
    with pytest.raises(MalformedHeaderBlock):
        parse_email(b"From: a@example.com\r\nSubject: no body separator")


def test_top_level_leaf_failure_is_fatal():
    raw = build_email([("Content-Type", "text/plain; charset=big5")], b"abc")
    with pytest.raises(UnsupportedCharset):
        parse_email(raw)


def test_nesting_limit_is_configurable():
    raw = build_email(
        [("Content-Type", "multipart/mixed; boundary=a")],
        b"--a\r\nContent-Type: multipart/mixed; boundary=b\r\n\r\n"
        b"--b\r\nContent-Type: text/plain\r\n\r\nhi\r\n--b--\r\n"
        b"--a--\r\n",
    )
    assert parse_email(raw)[0] == "hi"
    with pytest.raises(NestingTooDeep):
        parse_email(raw, max_depth=1)


def test_headers_always_have_message_id_and_tolerate_missing_from():
    body, headers = parse_email(b"\r\nOnly a body")
    assert body == "Only a body"
    assert headers["Message-ID"] == [""]
    assert headers.get("From") is None
    assert headers.get_first("Subject") == ""


def test_whitespace_only_body_is_empty_string():
    body, _ = parse_email(b"Subject: blank\r\n\r\n   \r\n\r\n")
    assert body == ""
