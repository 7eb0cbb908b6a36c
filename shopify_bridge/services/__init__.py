"""Service layer exports."""

from .oauth_flow import AuthorizationRedirect, InstallState, OAuthFlowController, StatusResult
from .resource_proxy import ResourceProxy
from .session_store import KeyValueStore, SessionStore
from .token_cipher import TokenCipherService

__all__ = [
    "AuthorizationRedirect",
    "InstallState",
    "KeyValueStore",
    "OAuthFlowController",
    "ResourceProxy",
    "SessionStore",
    "StatusResult",
    "TokenCipherService",
]
