# Overview: Request decorators for API routes: authentication gate and role filter.

from functools import wraps
from flask import request, g

from .errors import Forbidden, Unauthenticated
from .services import auth_service


def _is_authenticated() -> bool:
    return hasattr(g, "current_user")


def require_auth(f):
    """
    Require a valid bearer credential.

    Sets g.current_user to the resolved User. The record is used for
    identity and role only; responses serialize it through to_dict(),
    which never includes the password hash.

    Raises (translated to the response envelope by the app error handlers):
    - Unauthenticated (401): no/malformed/invalid/expired token
    - NotFound (404): user deleted since the token was issued
    - Forbidden (403): account not active
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.current_user = auth_service.resolve_request_user(request.headers.get("Authorization"))
        return f(*args, **kwargs)

    return decorated_function


def require_roles(*roles: str):
    """
    Require the authenticated user's role to be one of `roles`.

    Must be applied after @require_auth.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                raise Unauthenticated("Not authorized")

            role = g.current_user.role
            if role not in roles:
                raise Forbidden(f"User role '{role}' is not authorized to access this route")

            return f(*args, **kwargs)

        return decorated_function
    return decorator
