"""Issuing and validating HS256 session tokens."""

import time
from collections.abc import Callable
from typing import Any

import jwt

from account_engine.domain.exceptions import InvalidSessionToken
from account_engine.domain.models import Account, AccountStatus, Session, SessionClaims

ALGORITHM = "HS256"


class JWTSessionIssuer:
    """
    Implements SessionIssuer protocol via PyJWT.

    Tokens carry user_id, email, status, iat and an absolute exp. There
    is no refresh token and no revocation list: a validly signed,
    unexpired token authenticates its holder until exp.
    """

    def __init__(
        self,
        secret: str,
        expiry_hours: int = 24,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._secret = secret
        self._expires_in = expiry_hours * 3600
        self._clock = clock

    def issue(self, account: Account) -> Session:
        """
        Create a signed token for the account.

        Returns:
            Session with the encoded token and its TTL in seconds
        """
        now = int(self._clock())
        payload: dict[str, Any] = {
            "user_id": account.id,
            "email": account.email,
            "status": account.status.value,
            "iat": now,
            "exp": now + self._expires_in,
        }
        token = jwt.encode(payload, self._secret, algorithm=ALGORITHM)
        return Session(account=account, token=token, expires_in=self._expires_in)

    def decode(self, token: str) -> SessionClaims:
        """
        Verify signature and expiry and return the claims.

        Raises:
            InvalidSessionToken: On any signature, expiry or claim error
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp", "user_id"]},
            )
            return SessionClaims(
                user_id=int(payload["user_id"]),
                email=str(payload.get("email", "")),
                status=AccountStatus(payload.get("status")),
                expires_at=int(payload["exp"]),
                issued_at=payload.get("iat"),
            )
        except (jwt.PyJWTError, KeyError, TypeError, ValueError) as exc:
            raise InvalidSessionToken() from exc
