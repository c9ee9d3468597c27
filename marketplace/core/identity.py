"""Identity & role resolution.

Turns the session context of an inbound request into an ``Actor``. Sessions
are issued by the external identity provider; this module trusts the role
claim it finds there and performs no independent role verification.

Context keys, checked in order:
    claims        already-verified token claims (e.g. from an auth proxy)
    access_token  raw bearer token, decoded with the provider's shared secret
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional
from uuid import UUID

from jose import ExpiredSignatureError, JWTError, jwt

from marketplace.common.logger import get_logger
from marketplace.core.config import Settings, get_settings
from marketplace.core.entities import ANONYMOUS, Actor, Role

logger = get_logger("identity")


def parse_role_claim(value: Any) -> Role:
    """Map a loosely typed role claim onto the closed role set.

    An authenticated account without a role claim is a member; anything
    unrecognized is demoted to guest.
    """
    if value is None:
        return Role.MEMBER
    if isinstance(value, str):
        try:
            return Role(value.strip().lower())
        except ValueError:
            pass
    logger.warning("Unrecognized role claim %r, treating as guest", value)
    return Role.GUEST


def actor_from_claims(claims: Mapping[str, Any]) -> Actor:
    """Build an actor from identity-provider claims (``sub`` + ``user_metadata.role``)."""
    subject = claims.get("sub")
    if not subject:
        return ANONYMOUS
    try:
        account_id = UUID(str(subject))
    except ValueError:
        logger.warning("Session subject %r is not a valid account id", subject)
        return ANONYMOUS

    metadata = claims.get("user_metadata") or {}
    role_claim = metadata.get("role") if isinstance(metadata, Mapping) else None
    return Actor(
        account_id=account_id,
        role=parse_role_claim(role_claim),
        email=claims.get("email"),
    )


class IdentityResolver:
    """Stateless lookup of the current actor from a request's session context."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def resolve(self, context: Optional[Mapping[str, Any]]) -> Actor:
        if not context:
            return ANONYMOUS

        claims = context.get("claims")
        if claims:
            return actor_from_claims(claims)

        token = context.get("access_token")
        if token:
            decoded = self.decode_token(token)
            if decoded is not None:
                return actor_from_claims(decoded)

        return ANONYMOUS

    def decode_token(self, token: str) -> Optional[dict]:
        """Decode a provider-issued session token; ``None`` if it is invalid or expired."""
        audience = self.settings.identity_jwt_audience
        try:
            return jwt.decode(
                token,
                self.settings.identity_jwt_secret,
                algorithms=[self.settings.identity_jwt_algorithm],
                audience=audience,
                options={"verify_aud": audience is not None},
            )
        except ExpiredSignatureError:
            logger.info("Session token expired")
            return None
        except JWTError as exc:
            logger.info("Rejected session token: %s", exc)
            return None


def resolve(context: Optional[Mapping[str, Any]]) -> Actor:
    """Resolve ``context`` with the process-wide settings."""
    return IdentityResolver().resolve(context)


class IdentityProviderAdmin(ABC):
    """Write access to the role claim the identity provider keeps per account.

    Sessions issued after ``set_role`` returns carry the new role; sessions
    already issued keep the old claim until they are refreshed.
    """

    @abstractmethod
    def set_role(self, account_id: UUID, role: Role) -> None:
        """Store ``role`` as the account's role claim.

        Raises:
            IdentityProviderError: If the provider did not apply the change
        """
