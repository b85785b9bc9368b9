"""Security related functions."""

import logging

import jwt
from fastapi import HTTPException, status
from jwt import InvalidTokenError

from app.core.config import settings


logger = logging.getLogger(__name__)


class TokenAuthenticator:
    """
    Verifies access tokens issued by the hosted auth provider.

    Tokens are HS256 JWTs signed with the project's JWT secret. When no secret is
    configured the signature is not checked; that mode is only accepted in
    development.

    :ivar secret_key: The secret used to verify token signatures.
    :type secret_key: str
    :ivar algorithm: The expected signing algorithm.
    :type algorithm: str
    :ivar audience: The expected ``aud`` claim, or ``None`` to skip the check.
    :type audience: str
    """

    def __init__(
        self,
        secret_key: str | None = None,
        algorithm: str | None = None,
        audience: str | None = None,
        allow_unverified: bool | None = None,
    ):
        self.secret_key = secret_key if secret_key is not None else settings.auth_jwt_secret
        self.algorithm = algorithm or settings.auth_jwt_algorithm
        self.audience = audience if audience is not None else settings.auth_jwt_audience
        self.allow_unverified = settings.is_development if allow_unverified is None else allow_unverified

    def verify_token(self, token: str) -> dict:
        """
        Decode and verify a bearer token.

        :param token: The encoded JWT.
        :return: The decoded claims.
        :raises HTTPException: 401 when the token is invalid, expired or cannot be verified.
        """
        if not self.secret_key:
            if not self.allow_unverified:
                logger.error("JWT secret is not configured; refusing to accept tokens")
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Authentication is not configured",
                )
            return self._decode_unverified(token)

        try:
            return jwt.decode(
                token,
                key=self.secret_key,
                algorithms=[self.algorithm],
                audience=self.audience,
                options={"verify_aud": bool(self.audience)},
            )
        except InvalidTokenError as e:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=f"Invalid authentication token: {str(e)}",
            ) from e

    @staticmethod
    def _decode_unverified(token: str) -> dict:
        try:
            # Development only: no secret to check the signature against
            return jwt.decode(
                token,
                options={"verify_signature": False, "verify_aud": False, "verify_exp": False},
            )
        except InvalidTokenError as e:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=f"Invalid authentication token: {str(e)}",
            ) from e
