"""Bearer token verification.

Decodes HS256 access tokens (Supabase-compatible claims) and returns the
authenticated subject. Any failure is reported as ``InvalidToken``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from jose import JWTError, jwt

from progresslens.config import AuthConfig
from progresslens.logic.errors import InvalidToken

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    subject_id: str
    email: Optional[str] = None


def verify_bearer(authorization: Optional[str], auth: AuthConfig) -> Identity:
    if not authorization:
        raise InvalidToken("missing Authorization header")

    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise InvalidToken("malformed Authorization header")

    token = parts[1].strip()
    if not token:
        raise InvalidToken("malformed Authorization header")

    decode_kwargs: dict = {"key": auth.jwt_secret, "algorithms": list(auth.algorithms)}
    options = {"verify_aud": bool(auth.jwt_audience), "verify_iss": bool(auth.jwt_issuer)}
    if auth.jwt_audience:
        decode_kwargs["audience"] = auth.jwt_audience
    if auth.jwt_issuer:
        decode_kwargs["issuer"] = auth.jwt_issuer

    try:
        claims = jwt.decode(token, options=options, **decode_kwargs)
    except JWTError as e:
        logger.info("identity.token_rejected reason=%s", e.__class__.__name__)
        raise InvalidToken("token verification failed") from e

    subject = claims.get("sub")
    if not subject:
        raise InvalidToken("token has no subject")
    return Identity(subject_id=str(subject), email=claims.get("email"))


__all__ = ["Identity", "verify_bearer"]
