"""Flask web application exposing the header parser as a JSON API."""

import logging

from flask import Flask, jsonify, request

from header_parser.addresses import get_address_parser, parse_addresses
from header_parser.dates import parse_date
from header_parser.encoded_words import HeaderDecoder
from header_parser.exceptions import DateParseError
from header_parser.header import Header
import config

app = Flask(__name__)


def _raw_input():
    """Read raw header text from a JSON body ({"raw": ...}) or the plain body."""
    if request.is_json:
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return ""
        return payload.get("raw") or ""
    return request.get_data(as_text=True)


@app.route("/api/headers", methods=["POST"])
def api_headers():
    raw = _raw_input()
    if not raw.strip():
        return jsonify({"error": "No header provided"}), 400

    header = Header(raw)
    return jsonify({
        "fields": header.to_dict(),
        "boundary": header.get_boundary(),
    })


@app.route("/api/date")
def api_date():
    value = request.args.get("q", "").strip()
    if not value:
        return jsonify({"error": "No date provided"}), 400
    try:
        parsed = parse_date(value)
    except DateParseError as e:
        return jsonify({"error": str(e)}), 422
    return jsonify({"date": parsed.isoformat()})


@app.route("/api/addresses", methods=["POST"])
def api_addresses():
    raw = _raw_input()
    if not raw.strip():
        return jsonify({"addresses": []})
    decoder = HeaderDecoder(config.DECODER, config.FALLBACK_ENCODING)
    addresses = parse_addresses(raw, decoder, get_address_parser(config.ADDRESS_PARSER))
    return jsonify({"addresses": [a.to_dict() for a in addresses]})


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    app.run(debug=True, host="0.0.0.0", port=5000)
