from header_parser.attributes import read_attribute


def test_semicolon_inside_quotes():
    result = read_attribute('name="My; File.txt"; size=10')
    assert result == {"name": "My; File.txt", "size": "10"}


def test_keys_are_lowercased_and_trimmed():
    assert read_attribute("Charset=UTF-8") == {"charset": "UTF-8"}


def test_last_pair_without_semicolon():
    result = read_attribute("a=1; b=2")
    assert result["b"] == "2"


def test_value_without_key_becomes_key():
    result = read_attribute('multipart/mixed; boundary="abc123"')
    assert result == {"multipart/mixed": "", "boundary": "abc123"}


def test_rfc2231_continuations_are_concatenated():
    result = read_attribute('attachment; filename*0="foo"; filename*1="bar.txt"')
    assert result["filename"] == "foobar.txt"


def test_rfc2231_extended_value_is_kept_raw():
    result = read_attribute("multipart/mixed; boundary*0*=UTF-8''abc%20123")
    assert result["boundary"] == "UTF-8''abc%20123"


def test_escaped_character_is_dropped():
    # a backslash swallows the following character inside quotes
    assert read_attribute('name="a\\"b"') == {"name": "ab"}


def test_line_breaks_are_removed():
    result = read_attribute('text/plain;\r\n charset="utf-8"')
    assert result["charset"] == "utf-8"
