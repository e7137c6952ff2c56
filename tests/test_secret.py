"""
tests/test_secret.py -- Signing secret normalization and the missing-secret failure.

Covers:
  - One layer of surrounding double quotes is stripped, then whitespace
  - Secrets with a single or inner quote are left alone
  - Missing / blank secrets raise ConfigError
  - A quoted secret and its bare form sign and verify interchangeably
"""

from __future__ import annotations

import pytest

from auth.errors import ConfigError
from auth.models import User
from auth.secret import get_secret, normalize_secret
from auth.tokens import TokenService
from core.config import Settings


class TestNormalizeSecret:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("plain-secret", "plain-secret"),
            ('"quoted-secret"', "quoted-secret"),
            ('  "  padded inside "  ', '"  padded inside "'),
            ('" padded inside "', "padded inside"),
            ("  trailing-space  \n", "trailing-space"),
            ('""double""', '"double"'),
            ('"unbalanced', '"unbalanced'),
            ('in"side', 'in"side'),
        ],
    )
    def test_normalization(self, raw: str, expected: str) -> None:
        assert normalize_secret(raw) == expected

    def test_single_quote_character_is_not_stripped(self) -> None:
        assert normalize_secret('"') == '"'


class TestGetSecret:
    def test_returns_normalized_value(self) -> None:
        settings = Settings(jwt_secret=' "from-dotenv" ')
        # Outer whitespace prevents the quote strip; only the trim applies.
        assert get_secret(settings) == '"from-dotenv"'
        assert get_secret(Settings(jwt_secret='"from-dotenv"')) == "from-dotenv"

    @pytest.mark.parametrize("raw", ["", "   ", '""', '"   "'])
    def test_missing_secret_raises_config_error(self, raw: str) -> None:
        with pytest.raises(ConfigError, match="JWT_SECRET"):
            get_secret(Settings(jwt_secret=raw))

    def test_defaults_to_process_settings(self) -> None:
        # conftest.py exports JWT_SECRET before any import
        assert get_secret() == "test-secret-for-the-user-service-suite"


def test_quoted_and_bare_secret_are_interchangeable() -> None:
    """Tokens signed under the quoted form verify under the bare form."""
    user = User(id="user_1", name="Ann", email="a@x.com")
    signer = TokenService(get_secret(Settings(jwt_secret='"shared-secret"')))
    verifier = TokenService(get_secret(Settings(jwt_secret="shared-secret  ")))
    assert verifier.verify(signer.issue(user)).ok
