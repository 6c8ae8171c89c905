"""
Bearer-token authentication against Firebase, plus a static verifier for dev/tests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol

import firebase_admin
from firebase_admin import auth as firebase_auth

from todo_backend.errors import InvalidCredential, Unauthenticated, UpstreamError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerifiedIdentity:
    uid: str
    email: Optional[str] = None


class IdentityVerifier(Protocol):
    """Validates a bearer token and returns who it belongs to."""

    def verify(self, token: str) -> VerifiedIdentity:
        ...


def bearer_token(authorization: Optional[str]) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        raise Unauthenticated()
    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise Unauthenticated()
    return token


@dataclass
class StaticIdentityVerifier:
    """Test double mapping known tokens to identities."""

    identities: Dict[str, VerifiedIdentity] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, tokens: Dict[str, str]) -> "StaticIdentityVerifier":
        """Build from ``{token: "uid"}`` or ``{token: "uid:email"}`` entries."""
        identities = {}
        for token, identity in tokens.items():
            uid, _, email = identity.partition(":")
            identities[token] = VerifiedIdentity(uid=uid, email=email or None)
        return cls(identities)

    def verify(self, token: str) -> VerifiedIdentity:
        identity = self.identities.get(token)
        if identity is None:
            raise InvalidCredential()
        return identity


class FirebaseIdentityVerifier:
    """
    Verifies Firebase ID tokens with the Admin SDK. Every call is checked
    independently; no session state is kept.
    """

    def __init__(self, project_id: Optional[str] = None):
        try:
            self._app = firebase_admin.get_app()
        except ValueError:
            options = {"projectId": project_id} if project_id else None
            self._app = firebase_admin.initialize_app(options=options)

    def verify(self, token: str) -> VerifiedIdentity:
        try:
            decoded = firebase_auth.verify_id_token(token, app=self._app)
        except firebase_auth.CertificateFetchError as exc:
            logger.error("Could not fetch Firebase signing certificates: %s", exc)
            raise UpstreamError("Identity provider unavailable") from exc
        except (ValueError, firebase_auth.InvalidIdTokenError) as exc:
            # Expired and revoked tokens are InvalidIdTokenError subclasses.
            logger.warning("Token verification failed: %s", exc)
            raise InvalidCredential() from exc
        return VerifiedIdentity(uid=decoded["uid"], email=decoded.get("email"))
