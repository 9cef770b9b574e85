import logging
import os
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, HTTPException

from models.requests import MAX_RECIPIENTS, SendMailRequest
from services.config_service import HarmonyCredentials, get_secret, keyvault_status
from services.errors import ConfigurationError
from services.message_service import HarmonyClient

logger = logging.getLogger(__name__)

BUILD_FINGERPRINT = os.getenv("SCM_COMMIT_ID") or os.getenv("WEBSITE_DEPLOYMENT_ID") or "unknown"

# ======================================================
# FASTAPI APP
# ======================================================

app = FastAPI(title="Harmony RTM Relay")

# ======================================================
# SHARED CLIENT
# ======================================================

_client: Optional[HarmonyClient] = None


def get_client() -> HarmonyClient:
    """
    Lazily build the shared HarmonyClient.
    The app must start even if configuration is missing; the first call reports it.
    """
    global _client

    if _client is None:
        try:
            _client = HarmonyClient(HarmonyCredentials.from_settings())
        except ConfigurationError as e:
            logger.error("Harmony configuration incomplete: %s", ", ".join(e.missing))
            raise HTTPException(status_code=500, detail={
                "status": "error",
                "error": "missing_config",
                "missing": e.missing,
            })
    return _client


# ======================================================
# API ENDPOINTS
# ======================================================

@app.post("/api/messages/{ouid}/send")
def send_message(ouid: str, req: SendMailRequest):
    if not req.recipients or len(req.recipients) > MAX_RECIPIENTS:
        raise HTTPException(
            status_code=400,
            detail=f"recipients must contain between 1 and {MAX_RECIPIENTS} entries",
        )

    outcome = get_client().send_mail(ouid, req).result()
    if not outcome.ok:
        raise HTTPException(status_code=502, detail={
            "stage": "send",
            "error": type(outcome.error).__name__,
            "status_code": getattr(outcome.error, "status_code", None),
            "message": outcome.error_message,
        })

    return outcome.model_dump(exclude_none=True)


@app.get("/api/harmony/auth-test")
def harmony_auth_test():
    client = get_client()
    token = client.refresh_token()
    return {
        "status": "ok" if token else "fail",
        "token_endpoint": client.oauth.token_url,
        "token_type": token.token_type,
        "expires_in": token.expires_in,
        "refresh_count": client.token_store.refresh_count,
    }


@app.get("/kv-test")
def kv_test():
    """
    Simple Key Vault read test.
    Returns:
      - status: ok (if read works)
      - status: error (if KV config/MI/permissions fail)
    """
    try:
        client_id = get_secret("harmony-client-id")
        return {"status": "ok", "client_id_exists": bool(client_id), "keyvault": keyvault_status()}
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail={"message": f"Key Vault read failed: {str(e)}", "keyvault": keyvault_status()},
        )


@app.get("/build")
def build():
    return {
        "fingerprint": BUILD_FINGERPRINT,
        "file": __file__,
        "cwd": os.getcwd(),
        "scm_commit": os.getenv("SCM_COMMIT_ID"),
        "deployment_id": os.getenv("WEBSITE_DEPLOYMENT_ID"),
        "utc": datetime.now(timezone.utc).isoformat(),
    }
