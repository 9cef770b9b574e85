# services/__init__.py
"""
Harmony messaging services.

- message_service: HarmonyClient (send RTM, async outcome)
- transport: requests adapters for logging and bearer-token handling
- config_service: Key Vault / environment configuration
"""
