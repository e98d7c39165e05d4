"""
Auth Module - Dependencies
===========================
FastAPI dependencies that turn the signed session cookie into a
request-scoped CartContext.

The login collaborator stores {"id", "username", "role"} under
request.session["user"]; nothing here verifies credentials.
"""

from fastapi import Request, Depends

from common.exceptions import AuthenticationError, AuthorizationError
from modules.cart.session_cart import CartContext
from modules.user.models import UserRole


def get_cart_context(request: Request) -> CartContext:
    """Current shopper (possibly anonymous) and their session cart."""
    return CartContext.from_session(request.session)


def require_login(ctx: CartContext = Depends(get_cart_context)) -> CartContext:
    """Require an authenticated user. Raises 401 if not logged in."""
    if not ctx.is_authenticated:
        raise AuthenticationError()
    return ctx


def require_admin(ctx: CartContext = Depends(get_cart_context)) -> CartContext:
    """Only allow admin users. Raises 401 for anonymous callers, 403 otherwise."""
    if not ctx.is_authenticated:
        raise AuthenticationError()
    if ctx.role != UserRole.ADMIN:
        raise AuthorizationError()
    return ctx
