import os
import time
from dataclasses import dataclass, field, fields
from typing import Dict, Optional

from azure.identity import DefaultAzureCredential
from azure.keyvault.secrets import SecretClient

from services.errors import ConfigurationError

DEFAULT_AUTH_BASE_URL = "https://api-public.epsilon.com"
DEFAULT_MSG_BASE_URL = "https://api.harmony.epsilon.com"

# ======================================================
# KEY VAULT (Managed Identity) + caching
# ======================================================

KEYVAULT_NAME = os.getenv("KEYVAULT_NAME")  # may be None locally; do NOT crash at import time
KEYVAULT_URL = f"https://{KEYVAULT_NAME}.vault.azure.net/" if KEYVAULT_NAME else None

_credential: Optional[DefaultAzureCredential] = None
_secret_client: Optional[SecretClient] = None

_SECRET_CACHE: Dict[str, Dict[str, object]] = {}
_SECRET_TTL_SECONDS = int(os.getenv("SECRET_TTL_SECONDS", "300"))  # default 5 mins


def _get_secret_client() -> SecretClient:
    """
    Lazily create a Key Vault SecretClient.
    The app must start even if KEYVAULT_NAME is not set.
    """
    global _credential, _secret_client

    if not KEYVAULT_URL:
        raise RuntimeError("KEYVAULT_NAME environment variable is not set.")

    if _secret_client is None:
        _credential = DefaultAzureCredential()
        _secret_client = SecretClient(vault_url=KEYVAULT_URL, credential=_credential)

    return _secret_client


def keyvault_status() -> Dict[str, object]:
    """
    Lightweight status info for diagnostics (e.g. /kv-test).
    Does not call Key Vault; just reports readiness/config.
    """
    return {
        "keyvault_name_set": bool(KEYVAULT_NAME),
        "keyvault_name": KEYVAULT_NAME,
        "keyvault_url": KEYVAULT_URL,
        "client_initialized": _secret_client is not None,
        "cache_size": len(_SECRET_CACHE),
        "cache_ttl_seconds": _SECRET_TTL_SECONDS,
    }


def get_secret(name: str) -> str:
    """
    Read a secret from Azure Key Vault using Managed Identity.
    Includes a short in-memory cache to reduce Key Vault calls.
    """
    now = time.time()
    cached = _SECRET_CACHE.get(name)

    if cached and (now - float(cached["ts"])) < _SECRET_TTL_SECONDS:
        return str(cached["value"])

    client = _get_secret_client()
    value = client.get_secret(name).value

    _SECRET_CACHE[name] = {"value": value, "ts": now}
    return str(value)


def kv(name: str, fallback: Optional[str] = None) -> Optional[str]:
    """
    Fetch a secret from Key Vault, falling back to `fallback` when Key Vault
    is not configured, the read fails, or the secret is blank.
    """
    if not KEYVAULT_URL:
        return fallback
    try:
        val = get_secret(name)
    except Exception:
        return fallback
    if val is None or val.strip() in ("", "None"):
        return fallback
    return val


# ======================================================
# HARMONY CREDENTIALS
# ======================================================

@dataclass(frozen=True)
class HarmonyCredentials:
    """
    Everything needed to talk to Harmony. Fixed for the lifetime of a client.
    Secrets are kept out of repr() so they never end up in logs.
    """

    client_id: Optional[str] = None
    client_secret: Optional[str] = field(default=None, repr=False)
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    auth_base_url: Optional[str] = DEFAULT_AUTH_BASE_URL
    msg_base_url: Optional[str] = DEFAULT_MSG_BASE_URL

    def validate(self) -> "HarmonyCredentials":
        missing = [f.name for f in fields(self) if not getattr(self, f.name)]
        if missing:
            raise ConfigurationError(missing)
        return self

    @classmethod
    def from_settings(cls) -> "HarmonyCredentials":
        """Key Vault first, HARMONY_* environment variables as fallback."""
        return cls(
            client_id=kv("harmony-client-id", os.getenv("HARMONY_CLIENT_ID")),
            client_secret=kv("harmony-client-secret", os.getenv("HARMONY_CLIENT_SECRET")),
            username=kv("harmony-username", os.getenv("HARMONY_USERNAME")),
            password=kv("harmony-password", os.getenv("HARMONY_PASSWORD")),
            auth_base_url=kv("harmony-auth-base-url", os.getenv("HARMONY_AUTH_BASE_URL")) or DEFAULT_AUTH_BASE_URL,
            msg_base_url=kv("harmony-msg-base-url", os.getenv("HARMONY_MSG_BASE_URL")) or DEFAULT_MSG_BASE_URL,
        )
