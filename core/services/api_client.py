"""
Client HTTP de l'API Maghreb Global.
Toutes les requêtes portent l'en-tête X-API-KEY ; les PDF sont téléchargés
avec le même en-tête puis enregistrés localement.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import httpx
from pydantic import BaseModel

from core.config import AppConfig

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-KEY"


class ApiError(Exception):
    """Erreur API ; status = 0 pour un échec réseau."""

    def __init__(self, message: str, status: int = 0):
        super().__init__(message)
        self.status = status


class ProductInUseError(ApiError):
    """409 : produit référencé par une facture ou un BL."""


class Notification(BaseModel):
    level: Literal["error", "warning", "success"]
    title: str
    description: str


def describe_error(exc: BaseException) -> Notification:
    """Traduit une erreur en message utilisateur (sécurité / serveur / réseau / autre)."""
    message = str(exc) or ""
    status = getattr(exc, "status", None)
    if status == 403 or "Accès refusé" in message:
        return Notification(level="error", title="Sécurité", description="Accès refusé – Clé API invalide")
    if isinstance(status, int) and status >= 500:
        return Notification(level="error", title="Erreur serveur",
                            description="Le serveur Maghreb Global rencontre un problème interne.")
    if status == 0:
        return Notification(level="warning", title="Connexion impossible",
                            description="Vérifiez votre accès internet ou le pare-feu du serveur.")
    return Notification(level="error", title="Erreur système",
                        description=message or "Une erreur inconnue est survenue.")


def response_id(data: Any) -> Optional[str]:
    """Identifiant attribué par le serveur dans une réponse de création, s'il y en a un."""
    if isinstance(data, dict) and data.get("id") not in (None, ""):
        return str(data["id"])
    return None


class ApiClient:
    def __init__(self, config: AppConfig, transport: Optional[httpx.BaseTransport] = None):
        self.config = config
        self.base_url = config.api_base_url.rstrip("/") + "/"
        self.client = httpx.Client(
            headers={API_KEY_HEADER: config.api_key},
            timeout=config.api_timeout,
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def url(self, endpoint: str) -> str:
        if endpoint.startswith("http"):
            return endpoint
        return self.base_url + endpoint.lstrip("/")

    def _send(self, method: str, endpoint: str, payload: Any = None) -> httpx.Response:
        url = self.url(endpoint)
        try:
            response = self.client.request(method, url, json=payload)
        except httpx.HTTPError as e:
            logger.warning("%s %s: échec réseau (%s)", method, url, e)
            raise ApiError("Échec de la connexion – Vérifiez votre réseau", status=0) from e

        if response.status_code == 403:
            raise ApiError("Accès refusé – Clé API invalide", status=403)
        if not response.is_success:
            logger.warning("%s %s -> HTTP %s", method, url, response.status_code)
            raise ApiError(f"Erreur API ({response.status_code})", status=response.status_code)
        return response

    def request(self, method: str, endpoint: str, payload: Any = None) -> Any:
        """Retourne le JSON décodé ; {} si corps vide ; {"message": texte} si non-JSON."""
        response = self._send(method, endpoint, payload)
        text = response.text
        if not text:
            return {}
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return {"message": text}

    def get(self, endpoint: str) -> Any:
        return self.request("GET", endpoint)

    def post(self, endpoint: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        return self.request("POST", endpoint, payload)

    def download(self, endpoint: str, filename: str, out_dir: Path) -> Path:
        """Télécharge un PDF généré côté serveur (un lien direct ne porterait pas la clé)."""
        try:
            response = self._send("GET", endpoint)
        except ApiError as e:
            if e.status in (0, 403):
                raise
            raise ApiError("Impossible de générer le document PDF", status=e.status) from e

        out_dir.mkdir(parents=True, exist_ok=True)
        out_path = out_dir / filename
        out_path.write_bytes(response.content)
        logger.info("PDF téléchargé: %s", out_path)
        return out_path
