"""Password policy: validators and the chain that runs them."""

from auth.passwords.base import (
    ChainResult,
    PasswordContext,
    ValidationResult,
    Validator,
)
from auth.passwords.chain import ValidationChain
from auth.passwords.composition import CompositionValidator
from auth.passwords.dictionary import DictionaryValidator
from auth.passwords.nothing_personal import NothingPersonalValidator
from auth.passwords.pwned import PwnedValidator
from auth.passwords.similarity import normalize, similarity
