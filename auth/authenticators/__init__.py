"""Authentication strategies."""

from auth.authenticators.base import Authenticator
from auth.authenticators.session import SessionAuthenticator
from auth.authenticators.access_tokens import AccessTokensAuthenticator
from auth.authenticators.pipeline import PipelineAuthenticator
