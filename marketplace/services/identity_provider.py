"""Identity provider admin API client.

Role changes are written to the provider's per-account user metadata, the
same place ``marketplace.core.identity`` reads the role claim from.
"""

from typing import Optional
from uuid import UUID

import httpx

from marketplace.common.logger import get_logger
from marketplace.core.config import Settings
from marketplace.core.entities import Role
from marketplace.core.errors import IdentityProviderError
from marketplace.core.identity import IdentityProviderAdmin

logger = get_logger("identity_provider")

ADMIN_USERS_PATH = "/auth/v1/admin/users/{account_id}"


class HttpIdentityProviderAdmin(IdentityProviderAdmin):
    """Calls the provider's admin user endpoint with the service key."""

    def __init__(
        self,
        base_url: Optional[str],
        service_key: Optional[str],
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url
        self.service_key = service_key
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpIdentityProviderAdmin":
        return cls(
            settings.identity_admin_url,
            settings.identity_service_key,
            timeout=settings.identity_admin_timeout,
        )

    def set_role(self, account_id: UUID, role: Role) -> None:
        if not self.base_url or not self.service_key:
            raise IdentityProviderError("Identity provider admin API is not configured")

        url = self.base_url.rstrip("/") + ADMIN_USERS_PATH.format(account_id=account_id)
        headers = {
            "apikey": self.service_key,
            "Authorization": f"Bearer {self.service_key}",
        }
        payload = {"user_metadata": {"role": role.value}}

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.put(url, json=payload, headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Identity provider rejected role change for %s: HTTP %s",
                account_id, exc.response.status_code,
            )
            raise IdentityProviderError(
                "Identity provider rejected the role change",
                details={"status_code": exc.response.status_code},
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("Identity provider unreachable for %s: %s", account_id, exc)
            raise IdentityProviderError(f"Identity provider unreachable: {exc}") from exc

        logger.info("Set role %s for account %s at the identity provider", role.value, account_id)
