"""Authentication: strategies, password policy and hashing."""

from auth.exceptions import (
    AuthError,
    ConfigurationError,
    InvalidCredentialsError,
    AccountDisabledError,
    TokenExpiredError,
    TokenRevokedError,
    TokenReplayDetectedError,
    ValidationFailedError,
    RegistrationDisabledError,
)
from auth.types import (
    User,
    Credentials,
    AuthResult,
    FailureReason,
    RememberToken,
    AccessToken,
    SessionRecord,
)
from auth.config import AuthConfig, SessionConfig, load_config, resolve_user_provider
from auth.hasher import Hasher
from auth.database import AuthDatabase
from auth.security_logger import SecurityLogger, SecurityEvent
from auth.session import SessionManager, ValkeySessionStore
from auth.authenticators import (
    Authenticator,
    SessionAuthenticator,
    AccessTokensAuthenticator,
    PipelineAuthenticator,
)
from auth.passwords import ValidationChain, PasswordContext
from auth.registry import AuthenticatorRegistry, build_registry
from auth.service import AuthService
