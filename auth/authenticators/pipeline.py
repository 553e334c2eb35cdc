"""Composite authenticator: try several strategies in order."""

from typing import Sequence

from auth.authenticators.base import Authenticator
from auth.exceptions import ConfigurationError
from auth.types import AuthResult, Credentials, User


class PipelineAuthenticator(Authenticator):
    """
    Holds an ordered list of authenticators.

    attempt() returns the first success. On total failure the reason is
    the last member's, and AuthResult.reasons lists every member's
    reason in order.

    The pipeline writes no security events of its own; each member logs
    its own attempts, so it takes no SecurityLogger.
    """

    def __init__(self, authenticators: Sequence[Authenticator]):
        if not authenticators:
            raise ConfigurationError("A pipeline needs at least one authenticator")
        self._authenticators = tuple(authenticators)

    @property
    def authenticators(self) -> tuple[Authenticator, ...]:
        return self._authenticators

    def attempt(self, credentials: Credentials) -> AuthResult:
        reasons = []
        for authenticator in self._authenticators:
            result = authenticator.attempt(credentials)
            if result.success:
                return result
            reasons.append(result.reason)
        return AuthResult.failed(reasons[-1], reasons=tuple(reasons))

    def logged_in(self) -> User | None:
        for authenticator in self._authenticators:
            user = authenticator.logged_in()
            if user is not None:
                return user
        return None

    def logout(self) -> None:
        for authenticator in self._authenticators:
            authenticator.logout()
