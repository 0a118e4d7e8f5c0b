from __future__ import annotations

from functools import wraps

from flask import g, request

from ..core.exceptions import AuthenticationError, AuthorizationError
from ..core.permissions import Capability, can
from .model import User
from .repository import UserRepository
from .tokens import TokenService, bearer_token


class AuthGuard:
    """Authenticates the bearer token and checks one capability per route."""

    def __init__(self, tokens: TokenService, users: UserRepository):
        self._tokens = tokens
        self._users = users

    def authenticate(self) -> User:
        claims = self._tokens.decode(bearer_token(request.headers.get("Authorization")))
        user = self._users.get_by_id(claims.user_id)
        if not user:
            raise AuthenticationError("Usuario no encontrado")
        return user

    def requires(self, capability: Capability):
        def decorator(view):
            @wraps(view)
            def wrapper(*args, **kwargs):
                user = self.authenticate()
                if not can(user.role, capability):
                    raise AuthorizationError("Acceso denegado. Se requieren permisos de administrador")
                g.current_user = user
                return view(*args, **kwargs)

            return wrapper

        return decorator


def current_user() -> User:
    return g.current_user
