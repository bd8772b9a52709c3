from header_parser.models import RawAddress
from header_parser.tokenizer import (
    collapse,
    normalize_key,
    parse_raw_headers,
    sanitize_header_value,
    tokenize,
)


def test_normalize_key():
    assert normalize_key(" Reply-To ") == "reply_to"


def test_space_continuation_concatenates():
    assert tokenize("Subject: Hello\r\n World")["subject"] == "Hello World"


def test_tab_continuation_appends():
    assert tokenize("Subject: Hello\r\n\tWorld")["subject"] == ["Hello", "World"]


def test_space_continuation_on_list_appends():
    headers = tokenize("X-Tag: a\r\nX-Tag: b\r\n c")
    assert headers["x_tag"] == ["a", "b", "c"]


def test_repeated_fields_accumulate():
    headers = tokenize("Received: a\r\nReceived: b")
    assert headers["received"] == ["a", "b"]


def test_lines_without_colon_are_dropped():
    headers = tokenize("garbage line\r\n:no key\r\nX-Ok: yes")
    assert dict(headers) == {"x_ok": "yes"}


def test_continuation_before_any_field_is_ignored():
    assert dict(tokenize(" orphan\r\n\tindented")) == {}


def test_bare_line_feeds():
    assert tokenize("A: 1\nB: 2")["b"] == "2"


def test_empty_input():
    assert dict(tokenize("")) == {}
    assert parse_raw_headers(None) == {}


def test_collapse():
    assert collapse(["a"]) == "a"
    assert collapse(["a", "", "b"]) == "a b"
    assert collapse(["a", "b", "c"]) == ["a", "b", "c"]
    assert collapse(["", ""]) == ""


def test_subject_values_joined():
    headers = parse_raw_headers("Subject: Hello\r\n\tWorld")
    assert headers["subject"] == "Hello World"


def test_address_fields(raw_header):
    headers = parse_raw_headers(raw_header)
    assert headers["from"] == [RawAddress(personal="John Doe", mailbox="john", host="example.com")]
    assert headers["fromaddress"] == '"John Doe" <john@example.com>'
    assert len(headers["to"]) == 2
    assert headers["to"][0].personal == "=?UTF-8?Q?Jos=C3=A9?="


def test_repeated_address_fields_join_raw_text():
    headers = parse_raw_headers("To: a@b.example\r\nTo: c@d.example")
    assert headers["toaddress"] == "a@b.example, c@d.example"
    assert [a.mailbox for a in headers["to"]] == ["a", "c"]


def test_folded_received_header(raw_header):
    headers = parse_raw_headers(raw_header)
    assert headers["received"].startswith("from mail.example.com")
    assert "by mx.example.org" in headers["received"]


def test_syntax_error_markers_are_sanitized():
    headers = parse_raw_headers("To: <>, b@c.example")
    assert headers["to"] == [RawAddress(personal="", mailbox="b", host="c.example")]


def test_field_with_only_invalid_addresses_is_removed():
    headers = parse_raw_headers("From: <>")
    assert "from" not in headers
    assert headers["fromaddress"] == "<>"


def test_sanitize_header_value():
    values = [
        RawAddress("", "INVALID_ADDRESS", ".SYNTAX-ERROR."),
        RawAddress("", ">", None),
        RawAddress("", "a", "b.example"),
    ]
    assert sanitize_header_value(values) == [RawAddress("", "a", "b.example")]
    assert sanitize_header_value("plain") == "plain"
