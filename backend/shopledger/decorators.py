# Overview: Route decorators translating domain errors to JSON responses.

from functools import wraps
from flask import current_app, jsonify

from .errors import DomainError


def json_errors(action: str):
    """
    Map errors raised by a route body to JSON responses.

    - DomainError (and subclasses): {"error", "code", "details"} with the
      error's HTTP status
    - anything else: logged with traceback, generic 500

    The issuance transaction has already been rolled back by the time the
    error reaches here.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except DomainError as e:
                return jsonify(e.to_dict()), e.http_status
            except Exception:
                current_app.logger.exception("Failed to %s", action)
                return jsonify({"error": "Internal server error", "code": "INTERNAL_ERROR"}), 500
        return decorated_function
    return decorator
