"""
Infrastructure secrets from HashiCorp Vault.

The auth stack needs exactly two: the Postgres URL (users, tokens,
security events) and the Valkey URL (sessions). Both live in KV v2
under the "gatehouse/" mount path and are read once per process.

Login is AppRole, configured from VAULT_ADDR, VAULT_ROLE_ID,
VAULT_SECRET_ID and optionally VAULT_NAMESPACE. Missing configuration
or a refused login raises immediately.
"""

import logging
import os
import threading

import hvac
from hvac.exceptions import Forbidden, InvalidPath, Unauthorized, VaultError

logger = logging.getLogger(__name__)

SECRET_PREFIX = "gatehouse"

_client: "VaultClient | None" = None
_cache: dict[tuple[str, str], str] = {}
_lock = threading.Lock()


class VaultClient:
    """AppRole-authenticated reader of secrets under SECRET_PREFIX."""

    def __init__(self, vault_addr: str | None = None, vault_namespace: str | None = None):
        """
        Raises:
            ValueError: VAULT_ADDR or the AppRole credentials are not set.
            PermissionError: Vault refused the AppRole login.
        """
        addr = vault_addr or os.getenv("VAULT_ADDR")
        namespace = vault_namespace or os.getenv("VAULT_NAMESPACE")
        role_id = os.getenv("VAULT_ROLE_ID")
        secret_id = os.getenv("VAULT_SECRET_ID")

        if not addr:
            raise ValueError("VAULT_ADDR environment variable is required")
        if not role_id or not secret_id:
            raise ValueError("VAULT_ROLE_ID and VAULT_SECRET_ID environment variables are required")

        self.vault_addr = addr
        self.client = hvac.Client(url=addr, namespace=namespace) if namespace else hvac.Client(url=addr)
        self._login(role_id, secret_id)
        logger.info(f"Vault client ready: {addr}")

    def _login(self, role_id: str, secret_id: str) -> None:
        try:
            response = self.client.auth.approle.login(role_id=role_id, secret_id=secret_id)
            self.client.token = response["auth"]["client_token"]
        except (VaultError, KeyError) as e:
            logger.error(f"AppRole authentication failed: {e}")
            raise PermissionError(f"AppRole authentication failed: {e}")

        if not self.client.is_authenticated():
            raise PermissionError("Vault authentication failed")

    def get_secret(self, path: str, field: str) -> str:
        """
        Read one field of "gatehouse/<path>".

        Raises:
            PermissionError: Path missing or not readable with this role.
            KeyError: Field not present in the secret.
        """
        full_path = f"{SECRET_PREFIX}/{path}"
        try:
            response = self.client.secrets.kv.v2.read_secret_version(
                path=full_path, raise_on_deleted_version=True
            )
        except InvalidPath:
            raise PermissionError(f"Secret path '{full_path}' not found in Vault")
        except (Unauthorized, Forbidden) as e:
            logger.error(f"Access denied to secret {full_path}: {e}")
            raise PermissionError(f"Access denied to secret '{full_path}': {e}")

        data = response["data"]["data"]
        if field not in data:
            raise KeyError(f"Field '{field}' not found in secret '{full_path}'. Available: {', '.join(data)}")
        return data[field]


def _secret(path: str, field: str) -> str:
    """Process-wide cached read; the client is created on first use."""
    global _client
    with _lock:
        if (path, field) not in _cache:
            if _client is None:
                _client = VaultClient()
            _cache[(path, field)] = _client.get_secret(path, field)
        return _cache[(path, field)]


def get_database_url() -> str:
    """PostgreSQL URL for the auth tables."""
    return _secret("database", "url")


def get_valkey_url() -> str:
    """Valkey URL for session storage."""
    return _secret("valkey", "url")
