"""Parse ``key=value; key2="value2"`` parameter lists (Content-Type and friends)."""

from collections import OrderedDict
from typing import Dict


def _scan(raw_attribute: str) -> "OrderedDict[str, str]":
    """Split the raw string into key/value pairs, honouring quotes and escapes."""
    pairs = OrderedDict()
    key = ""
    value = ""
    inside_word = False
    inside_key = True
    escaped = False

    for char in raw_attribute:
        if escaped:
            # the escaped character is dropped along with its backslash
            escaped = False
            continue
        if inside_word:
            if char == "\\":
                escaped = True
            elif char == '"' and value != "":
                inside_word = False
            else:
                value += char
        elif inside_key:
            if char == '"':
                inside_word = True
            elif char == ";":
                pairs[key] = value
                key = ""
                value = ""
            elif char == "=":
                inside_key = False
            else:
                key += char
        else:
            if char == '"' and value == "":
                inside_word = True
            elif char == ";":
                pairs[key] = value
                key = ""
                value = ""
                inside_key = True
            else:
                value += char

    pairs[key] = value
    return pairs


def read_attribute(raw_attribute: str) -> Dict[str, str]:
    """Parse a parameter list into an ordered mapping of lowercase key -> value.

    RFC 2231 continuation suffixes (``name*0*``, ``name*``) are stripped and
    the parts are concatenated under the bare name.
    """
    result = OrderedDict()
    for key, value in _scan(raw_attribute).items():
        if "*" in key:
            key = key[:key.index("*")]
        key = key.strip().lower()

        value = value.replace("\r", "").replace("\n", "").strip()
        if len(value) > 1 and value.startswith('"') and value.endswith('"'):
            value = value[1:-1]
        result[key] = result.get(key, "") + value
    return result
