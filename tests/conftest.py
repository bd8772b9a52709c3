import os
import sys
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from header_parser.encoded_words import HeaderDecoder  # noqa: E402

RAW_HEADER = "\r\n".join([
    "Return-Path: <sender@example.com>",
    "Received: from mail.example.com (mail.example.com [192.0.2.1])",
    "\tby mx.example.org with ESMTP id abc; Thu, 8 Nov 2018 08:54:58 -0200",
    "Message-ID: <1234@example.com>",
    "Date: Thu, 8 Nov 2018 08:54:58 -0200 (-02)",
    'From: "John Doe" <john@example.com>',
    "To: =?UTF-8?Q?Jos=C3=A9?= <jose@example.org>, jane@example.org",
    'Cc: "Doe, Jane" <jane.doe@example.org>',
    "Subject: =?UTF-8?Q?Caf=C3=A9?= menu",
    "X-Priority: 1 (Highest)",
    "MIME-Version: 1.0",
    'Content-Type: multipart/mixed; boundary="abc123"',
])


@pytest.fixture
def raw_header():
    return RAW_HEADER


@pytest.fixture
def decoder():
    return HeaderDecoder("native", "utf-8")
