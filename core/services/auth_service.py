from __future__ import annotations
import hmac
from typing import Optional

from passlib.context import CryptContext

from core.config import AppConfig

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash bcrypt à coller dans settings.json -> auth.password_hash."""
    return pwd_context.hash(password)


class AuthService:
    """
    Verrou de session du poste : identifiant + hash bcrypt lus dans la config.
    Ce n'est pas une barrière de sécurité, l'API reste protégée par sa clé côté serveur.
    Sans identifiants configurés, le verrou est désactivé.
    """

    def __init__(self, config: AppConfig):
        self.username: Optional[str] = config.auth_username
        # hash PHP ($2y$) -> préfixe compris par bcrypt ($2a$)
        raw = config.auth_password_hash or ""
        self.password_hash: Optional[str] = ("$2a$" + raw[4:]) if raw.startswith("$2y$") else (raw or None)

    @property
    def enabled(self) -> bool:
        return bool(self.username and self.password_hash)

    def verify(self, username: str, password: str) -> bool:
        if not self.enabled:
            return True
        if not hmac.compare_digest((username or "").encode(), self.username.encode()):
            return False
        try:
            return pwd_context.verify(password or "", self.password_hash)
        except ValueError:
            # hash mal formé dans settings.json
            return False
