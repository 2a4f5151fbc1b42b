# glazier/fields.py

"""Request payload helpers shared by the blueprints."""

from flask import request

from glazier.errors import ValidationFailed


def clean_text(value):
    """Stripped string, or None when blank."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def json_body() -> dict:
    """The request's JSON object; an empty or unparsable body reads as ``{}``."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationFailed('Request body must be a JSON object')
    return data
