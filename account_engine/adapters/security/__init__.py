"""Password hashing and session token adapters."""

from .bcrypt_hasher import BcryptPasswordHasher
from .jwt_sessions import JWTSessionIssuer

__all__ = ["BcryptPasswordHasher", "JWTSessionIssuer"]
