from __future__ import annotations

import pytest

from core.config import AppConfig
from core.services.auth_service import AuthService, hash_password


@pytest.fixture(scope="module")
def password_hash():
    return hash_password("s3cret!")


def test_disabled_without_credentials():
    auth = AuthService(AppConfig())
    assert not auth.enabled
    assert auth.verify("", "")


def test_verify_with_bcrypt_hash(password_hash):
    auth = AuthService(AppConfig(auth_username="admin", auth_password_hash=password_hash))
    assert auth.enabled
    assert auth.verify("admin", "s3cret!")
    assert not auth.verify("admin", "mauvais")
    assert not auth.verify("autre", "s3cret!")
    assert not auth.verify("", "")


def test_php_style_hash_prefix_is_accepted(password_hash):
    php_hash = "$2y$" + password_hash[4:]
    auth = AuthService(AppConfig(auth_username="admin", auth_password_hash=php_hash))
    assert auth.verify("admin", "s3cret!")


def test_malformed_hash_never_authenticates():
    auth = AuthService(AppConfig(auth_username="admin", auth_password_hash="pas-un-hash"))
    assert auth.enabled
    assert not auth.verify("admin", "pas-un-hash")
