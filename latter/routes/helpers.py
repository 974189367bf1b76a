"""Shared route helpers."""
from flask import request

from latter.app import socketio


def request_data():
    """Return the request body as a dict, accepting JSON or form posts."""
    data = request.get_json(silent=True)
    if data is None:
        data = request.form.to_dict()
    if not isinstance(data, dict):
        return {}
    return data


def nested_fields(data, key):
    """Accept ``{"player": {...}}``, ``player[email]=...`` form keys or flat payloads."""
    nested = data.get(key)
    if isinstance(nested, dict):
        return nested
    prefix = f'{key}['
    bracketed = {
        name[len(prefix):-1]: value
        for name, value in data.items()
        if name.startswith(prefix) and name.endswith(']')
    }
    if bracketed:
        return bracketed
    return data


def emit_ladder_update(reason='', challenge_id=None):
    payload = {'reason': reason}
    if challenge_id is not None:
        payload['challenge_id'] = challenge_id
    socketio.emit('ladder_update', payload)
