from flask import jsonify, request
from werkzeug.exceptions import BadRequest


def api_response(data=None, message="", *, status=200):
    body = {"success": True, "data": data, "message": message, "errors": []}
    return jsonify(body), status


def api_error(message, *, errors=None, data=None, status=400):
    body = {
        "success": False,
        "data": data,
        "message": message,
        "errors": list(errors or []),
    }
    return jsonify(body), status


def iso(value):
    return value.isoformat() if value else None


def optional_int(payload: dict, key: str) -> int | None:
    value = payload.get(key)
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise BadRequest(f"{key} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BadRequest(f"{key} must be an integer")


def bounded_int_arg(args, key: str, default: int, maximum: int) -> int:
    """Query-string integer in 1..maximum, else the default."""
    value = args.get(key, type=int)
    if value is None or value < 1 or value > maximum:
        return default
    return value


def optional_str(payload: dict, key: str) -> str | None:
    value = payload.get(key)
    if value is not None and not isinstance(value, str):
        raise BadRequest(f"{key} must be a string")
    return value


def json_payload() -> dict:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise BadRequest("JSON object expected")
    return payload
