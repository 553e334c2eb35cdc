"""
Password hashing with a selectable algorithm.

Hashes are self-describing: bcrypt strings carry their cost
("$2b$10$..."), argon2 strings carry variant and parameters
("$argon2id$v=19$m=2048,t=4,p=4$..."). verify() therefore works on any
supported hash regardless of the current configuration, and
needs_rehash() compares what a hash was made with against what this
Hasher would produce today.

Work is deliberately slow and proportional to the configured cost.
"""

import base64
import hashlib
import logging

import bcrypt
from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError

from auth.config import AuthConfig
from auth.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ALGORITHMS = ("default", "bcrypt", "argon2i", "argon2id")

# bcrypt ignores everything after 72 bytes
_BCRYPT_MAX_BYTES = 72

_ARGON2_TYPES = {"argon2i": Type.I, "argon2id": Type.ID}


def _algorithm_of(hash_string: str) -> str | None:
    """Identify the algorithm that produced a hash string."""
    if hash_string.startswith("$argon2id$"):
        return "argon2id"
    if hash_string.startswith("$argon2i$"):
        return "argon2i"
    if hash_string[:4] in ("$2a$", "$2b$", "$2y$"):
        return "bcrypt"
    return None


def _bcrypt_input(password: str) -> bytes:
    raw = password.encode("utf-8")
    if len(raw) > _BCRYPT_MAX_BYTES:
        # 64 base64 chars, well under the limit, and no byte is dropped
        raw = base64.b64encode(hashlib.sha384(raw).digest())
    return raw


class Hasher:
    """hash / verify / needs_rehash over bcrypt and argon2."""

    def __init__(
        self,
        algorithm: str = "default",
        cost: int = 10,
        memory_cost: int = 2048,
        time_cost: int = 4,
        threads: int = 4,
    ):
        """
        Args:
            algorithm: default (bcrypt), bcrypt, argon2i or argon2id
            cost: bcrypt cost factor, 4-31
            memory_cost: argon2 memory in KiB
            time_cost: argon2 iterations
            threads: argon2 parallelism

        Raises:
            ConfigurationError: On unknown algorithm or out-of-range costs.
        """
        if algorithm not in ALGORITHMS:
            raise ConfigurationError(f"Unknown hash algorithm: {algorithm}")

        self.algorithm = "bcrypt" if algorithm == "default" else algorithm
        self.cost = cost
        self._argon2: PasswordHasher | None = None

        if self.algorithm == "bcrypt":
            if not 4 <= cost <= 31:
                raise ConfigurationError(f"bcrypt cost must be between 4 and 31, got {cost}")
        else:
            if time_cost < 1 or threads < 1:
                raise ConfigurationError("argon2 time_cost and threads must be at least 1")
            if memory_cost < 8 * threads:
                raise ConfigurationError("argon2 memory_cost must be at least 8 KiB per thread")
            self._argon2 = PasswordHasher(
                time_cost=time_cost,
                memory_cost=memory_cost,
                parallelism=threads,
                type=_ARGON2_TYPES[self.algorithm],
            )

    @classmethod
    def from_config(cls, config: AuthConfig) -> "Hasher":
        return cls(
            algorithm=config.hash_algorithm,
            cost=config.hash_cost,
            memory_cost=config.hash_memory_cost,
            time_cost=config.hash_time_cost,
            threads=config.hash_threads,
        )

    def hash(self, password: str) -> str:
        """Hash a password with the configured algorithm and parameters."""
        if self._argon2 is not None:
            return self._argon2.hash(password)
        salt = bcrypt.gensalt(rounds=self.cost, prefix=b"2b")
        return bcrypt.hashpw(_bcrypt_input(password), salt).decode("ascii")

    def verify(self, password: str, hash_string: str) -> bool:
        """
        Check a password against any supported hash.

        Returns False (never raises) for mismatches and malformed hashes.
        """
        if not hash_string:
            return False

        algorithm = _algorithm_of(hash_string)

        if algorithm == "bcrypt":
            try:
                return bcrypt.checkpw(_bcrypt_input(password), hash_string.encode("ascii"))
            except ValueError:
                logger.warning("Malformed bcrypt hash encountered during verify")
                return False

        if algorithm in _ARGON2_TYPES:
            # Type and parameters are read from the hash itself
            try:
                return PasswordHasher().verify(hash_string, password)
            except VerificationError:
                return False
            except InvalidHashError:
                logger.warning("Malformed argon2 hash encountered during verify")
                return False

        return False

    def needs_rehash(self, hash_string: str) -> bool:
        """True if hash_string was not produced by this exact configuration."""
        if _algorithm_of(hash_string) != self.algorithm:
            return True

        if self._argon2 is not None:
            try:
                return self._argon2.check_needs_rehash(hash_string)
            except InvalidHashError:
                return True

        try:
            return int(hash_string[4:6]) != self.cost
        except ValueError:
            return True
