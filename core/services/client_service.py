from __future__ import annotations
from typing import Iterable, List
import logging

from pydantic import ValidationError

from core.models.client import Client
from core.services.api_client import ApiClient, ApiError, response_id

logger = logging.getLogger(__name__)


class ClientService:
    def __init__(self, api: ApiClient):
        self.api = api

    def fetch_clients(self) -> List[Client]:
        data = self.api.get("clients.php")
        out: List[Client] = []
        for d in data if isinstance(data, list) else []:
            try:
                out.append(Client.model_validate(d))
            except ValidationError:
                # On ignore les entrées invalides pour ne pas casser l'UI
                logger.warning("Client ignoré (données invalides): %r", d)
                continue
        return out

    def add_client(self, name: str, ice: str = "", phone: str = "", address: str = "") -> Client:
        name = (name or "").strip()
        if not name:
            raise ValueError("Le nom du client est requis.")
        client = Client(name=name, ice=ice.strip(), phone=phone.strip(), address=address.strip())
        server_id = response_id(self.api.post("add_client.php", client.to_api()))
        if server_id is not None:
            return client.model_copy(update={"id": server_id})
        # pas d'id dans la réponse : on relit la liste pour récupérer celui du serveur
        try:
            created = [c for c in self.fetch_clients() if (c.name, c.ice) == (client.name, client.ice)]
        except ApiError as e:
            logger.warning("Client %s ajouté mais liste illisible (%s), id local conservé", name, e)
            return client
        if not created:
            logger.warning("Client %s introuvable après ajout, id local conservé", name)
            return client
        return created[-1]

    def delete_client(self, client_id: str) -> None:
        self.api.post("delete_client.php", {"id": client_id})

    @staticmethod
    def search(clients: Iterable[Client], term: str) -> List[Client]:
        t = (term or "").strip().lower()
        return [
            c for c in clients
            if c is not None and (t in (c.name or "").lower() or t in (c.ice or "").lower())
        ]
