from flask import current_app, request


def public_base_url():
    """Prefix for verification links: configured URL, else the current request host."""
    return current_app.config.get('PUBLIC_BASE_URL') or request.host_url.rstrip('/')


def get_json_body():
    """Request JSON as a dict (empty when the body is missing or not an object)."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
