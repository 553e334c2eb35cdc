"""Tests for auth/config.py - Auth configuration with validation."""

import pytest
from pydantic import ValidationError

from auth.config import AuthConfig, SessionConfig, load_config, resolve_user_provider
from auth.database import AuthDatabase
from auth.exceptions import ConfigurationError


class TestAuthConfigDefaults:
    """Tests that AuthConfig has sensible defaults."""

    def test_authenticator_defaults(self):
        config = AuthConfig()
        assert config.authenticators == {
            "tokens": "tokens",
            "session": "session",
            "pipeline": "pipeline",
        }
        assert config.default_authenticator == "session"
        assert config.pipeline_members == ["session", "tokens"]

    def test_session_defaults(self):
        config = AuthConfig()
        assert config.session.field == "logged_in"
        assert config.session.allow_remembering is True
        assert config.session.remember_cookie_name == "remember"
        assert config.session.remember_length == 30 * 86400

    def test_password_policy_defaults(self):
        config = AuthConfig()
        assert config.minimum_password_length == 8
        assert config.max_similarity == 50
        assert config.password_validators == ["composition", "nothing_personal", "dictionary"]
        assert config.valid_fields == ["email", "username"]
        assert config.personal_fields == []

    def test_hash_defaults(self):
        config = AuthConfig()
        assert config.hash_algorithm == "default"
        assert config.hash_cost == 10
        assert (config.hash_memory_cost, config.hash_time_cost, config.hash_threads) == (2048, 4, 4)


class TestAuthConfigValidation:
    """Tests that AuthConfig enforces validation bounds."""

    def test_hash_cost_min_bound(self):
        with pytest.raises(ValidationError):
            AuthConfig(hash_cost=3)  # < 4

    def test_hash_cost_max_bound(self):
        with pytest.raises(ValidationError):
            AuthConfig(hash_cost=32)  # > 31

    def test_max_similarity_bounds(self):
        with pytest.raises(ValidationError):
            AuthConfig(max_similarity=101)
        with pytest.raises(ValidationError):
            AuthConfig(max_similarity=-1)

    def test_max_similarity_zero_allowed(self):
        assert AuthConfig(max_similarity=0).max_similarity == 0

    def test_unknown_hash_algorithm(self):
        with pytest.raises(ValidationError):
            AuthConfig(hash_algorithm="md5")

    def test_unknown_validator_name(self):
        with pytest.raises(ValidationError):
            AuthConfig(password_validators=["composition", "astrology"])

    def test_duplicate_validators_rejected(self):
        with pytest.raises(ValidationError):
            AuthConfig(password_validators=["composition", "composition"])

    def test_default_must_be_configured_alias(self):
        with pytest.raises(ValidationError, match="default_authenticator"):
            AuthConfig(default_authenticator="ldap")

    def test_pipeline_member_must_exist(self):
        with pytest.raises(ValidationError, match="pipeline member"):
            AuthConfig(pipeline_members=["session", "oauth"])

    def test_pipeline_cannot_contain_pipeline(self):
        with pytest.raises(ValidationError, match="cannot itself be a pipeline"):
            AuthConfig(pipeline_members=["pipeline"])

    def test_argon2_memory_per_thread(self):
        with pytest.raises(ValidationError, match="per thread"):
            AuthConfig(hash_memory_cost=16, hash_threads=4)

    def test_remember_length_min_bound(self):
        with pytest.raises(ValidationError):
            SessionConfig(remember_length=10)


class TestLoadConfig:
    """load_config() turns validation failures into ConfigurationError."""

    def test_valid_mapping(self):
        config = load_config({"max_similarity": 60, "session": {"field": "uid"}})
        assert config.max_similarity == 60
        assert config.session.field == "uid"

    def test_empty_mapping_gives_defaults(self):
        assert load_config() == AuthConfig()

    def test_malformed_cost_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            load_config({"hash_cost": 99})


class TestResolveUserProvider:
    """user_provider names the UserStore implementation."""

    def test_default_provider(self):
        assert resolve_user_provider(AuthConfig()) is AuthDatabase

    def test_missing_module(self):
        with pytest.raises(ConfigurationError):
            resolve_user_provider(AuthConfig(user_provider="nowhere.UserModel"))

    def test_missing_class(self):
        with pytest.raises(ConfigurationError):
            resolve_user_provider(AuthConfig(user_provider="auth.database.NoSuchStore"))

    def test_not_dotted(self):
        with pytest.raises(ConfigurationError, match="dotted"):
            resolve_user_provider(AuthConfig(user_provider="AuthDatabase"))
