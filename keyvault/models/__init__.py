from keyvault.models.api_key import ApiKey
from keyvault.models.auth_session import AuthSession
from keyvault.models.key_audit import KeyAudit
from keyvault.models.user import User

__all__ = [
    "ApiKey",
    "AuthSession",
    "KeyAudit",
    "User",
]
