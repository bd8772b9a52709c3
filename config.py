import os

# "native" uses the email package decoder, "generic" the per-word decoder
DECODER = os.environ.get("HEADER_DECODER", "native")

# "regex" splits address lists by hand, "native" uses email.utils
ADDRESS_PARSER = os.environ.get("HEADER_ADDRESS_PARSER", "regex")

BOUNDARY_REGEX = os.environ.get("HEADER_BOUNDARY_REGEX", r"boundary=(.*?(?=;)|(.*))")

# Used instead of "now" when a Date header cannot be parsed
FALLBACK_DATE = os.environ.get("HEADER_FALLBACK_DATE") or None

FALLBACK_ENCODING = os.environ.get("HEADER_FALLBACK_ENCODING", "utf-8")
