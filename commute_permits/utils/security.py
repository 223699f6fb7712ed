"""Access control helpers for the commute permit API."""

from functools import wraps
from flask import abort
from flask_login import current_user

from commute_permits.services.approval import Actor


def role_required(*roles):
    """Decorator to require specific roles."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                abort(401)
            
            if current_user.role not in roles or not current_user.is_active:
                abort(403)
            
            return f(*args, **kwargs)
        return decorated_function
    return decorator


admin_required = role_required('admin')


def current_actor():
    """Approver identity of the logged-in user."""
    return Actor.from_user(current_user)
