from __future__ import annotations
import logging
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Sequence, Union

from core.config import AppConfig
from core.models.client import Client
from core.models.company import CompanyInfo
from core.models.document import DELIVERY_SLIP, INVOICE, DashboardStats, DocType, Document, LineItem
from core.models.product import Product
from core.services.api_client import ApiClient, ApiError, Notification, describe_error
from core.services.catalog_service import CatalogService
from core.services.client_service import ClientService
from core.services.document_service import DocumentService
from core.services.settings_service import SettingsService
from core.services import soft_delete as trash
from core.storage.repo import JsonCache

logger = logging.getLogger(__name__)

TrashKind = Literal["clients", "products", "invoices", "delivery_slips"]

# catégorie de corbeille -> (collection, type de document éventuel)
_KINDS: Dict[str, tuple[str, Optional[DocType]]] = {
    "clients": ("clients", None),
    "products": ("products", None),
    "invoices": ("documents", INVOICE),
    "delivery_slips": ("documents", DELIVERY_SLIP),
}


def compute_dashboard_stats(clients: Sequence[Optional[Client]],
                            documents: Sequence[Optional[Document]]) -> DashboardStats:
    """Chiffre d'affaires = somme TTC des factures actives ; les éléments en corbeille sont ignorés."""
    docs = trash.list_active(documents)
    invoices = [d for d in docs if d.type == INVOICE]
    return DashboardStats(
        total_revenue=sum(d.total_ttc for d in invoices),
        invoice_count=len(invoices),
        delivery_count=sum(1 for d in docs if d.type == DELIVERY_SLIP),
        client_count=len(trash.list_active(clients)),
    )


def _merge_remote(fresh: List[Any], local: List[Any]) -> List[Any]:
    """
    Liste distante + état de corbeille local :
    - une entité mise en corbeille localement garde son tombstone
    - une entité en corbeille absente de la réponse reste restaurable
    """
    tombstones = {e.id: e.deleted_at for e in trash.list_trashed(local)}
    out = [e.model_copy(update={"deleted_at": tombstones[e.id]}) if e.id in tombstones else e for e in fresh]
    seen = {e.id for e in fresh}
    out.extend(e for e in trash.list_trashed(local) if e.id not in seen)
    return out


class WorkflowService:
    """
    État applicatif : clients, produits, documents et société.
    Le cache local est lu au démarrage (aucun appel réseau) puis réécrit à chaque mutation.
    """

    def __init__(self, config: AppConfig, api: Optional[ApiClient] = None):
        self.config = config
        self.api = api or ApiClient(config)
        self.client_service = ClientService(self.api)
        self.catalog = CatalogService(self.api)
        self.documents_service = DocumentService(self.api)
        self.settings = SettingsService(config.settings_path)

        data_dir = Path(config.data_dir)
        self.caches: Dict[str, JsonCache] = {
            "clients": JsonCache(data_dir / "clients.json", Client),
            "products": JsonCache(data_dir / "products.json", Product),
            "documents": JsonCache(data_dir / "documents.json", Document),
        }
        self.clients: List[Client] = self.caches["clients"].load()
        self.products: List[Product] = self.caches["products"].load()
        self.documents: List[Document] = self.caches["documents"].load()
        self.company: CompanyInfo = self.settings.load_company()
        self.last_notification: Optional[Notification] = None

    def _persist(self, name: str) -> None:
        self.caches[name].save(getattr(self, name))

    def _notify(self, exc: BaseException) -> Notification:
        self.last_notification = describe_error(exc)
        return self.last_notification

    # ---------- Synchronisation ---------- #

    def refresh_clients(self) -> bool:
        """True si la liste vient de l'API ; False si on reste sur le cache."""
        try:
            fresh = self.client_service.fetch_clients()
        except ApiError as e:
            logger.warning("Clients: API indisponible (%s), cache conservé", e)
            self._notify(e)
            return False
        self.clients = _merge_remote(fresh, self.clients)
        self._persist("clients")
        return True

    def refresh_products(self) -> bool:
        try:
            fresh = self.catalog.fetch_products()
        except ApiError as e:
            logger.warning("Produits: API indisponible (%s), cache conservé", e)
            self._notify(e)
            return False
        self.products = _merge_remote(fresh, self.products)
        self._persist("products")
        return True

    def refresh(self) -> bool:
        self.last_notification = None
        ok_clients = self.refresh_clients()
        ok_products = self.refresh_products()
        return ok_clients and ok_products

    # ---------- Vues ---------- #

    def active_clients(self) -> List[Client]:
        return trash.list_active(self.clients)

    def active_products(self) -> List[Product]:
        return trash.list_active(self.products)

    def active_documents(self, kind: Optional[DocType] = None) -> List[Document]:
        return [d for d in trash.list_active(self.documents) if kind is None or d.type == kind]

    def trashed(self, kind: TrashKind) -> List[Any]:
        attr, doc_type = _KINDS[kind]
        pred = (lambda d: d.type == doc_type) if doc_type else None
        return trash.list_trashed(getattr(self, attr), pred)

    def trash_count(self) -> int:
        return sum(trash.count_trashed(getattr(self, n)) for n in ("clients", "products", "documents"))

    def stats(self) -> DashboardStats:
        return compute_dashboard_stats(self.clients, self.documents)

    def recent_documents(self, limit: int = 5) -> List[Document]:
        return list(reversed(trash.list_active(self.documents)))[:limit]

    def find_client(self, client_id: Any) -> Optional[Client]:
        return next((c for c in self.clients if c is not None and c.id == client_id), None)

    # ---------- Clients / produits ---------- #

    def add_client(self, name: str, ice: str = "", phone: str = "", address: str = "") -> Client:
        client = self.client_service.add_client(name, ice, phone, address)
        if self.find_client(client.id) is None:
            self.clients = [*self.clients, client]
        self._persist("clients")
        return client

    def delete_client(self, client_id: Any) -> None:
        # suppression distante d'abord : en cas d'erreur rien ne change localement
        self.client_service.delete_client(client_id)
        self.clients = trash.soft_delete(self.clients, client_id)
        self._persist("clients")

    def save_product(self, name: str, price_ht: Union[str, float], format: Optional[str] = None,
                     product_id: Optional[Union[int, str]] = None) -> Product:
        product = self.catalog.save_product(name, price_ht, format, product_id)
        if product_id is None:
            if all(p is None or p.id != product.id for p in self.products):
                self.products = [*self.products, product]
        else:
            self.products = [
                p.model_copy(update={"name": product.name, "price_ht": product.price_ht, "format": product.format})
                if p is not None and p.id == product_id else p
                for p in self.products
            ]
        self._persist("products")
        return product

    def delete_product(self, product_id: Any) -> None:
        self.catalog.delete_product(product_id)
        self.products = trash.soft_delete(self.products, product_id)
        self._persist("products")

    # ---------- Documents ---------- #

    def create_invoice(self, client: Optional[Client], items: Sequence[LineItem],
                       doc_date: Optional[date] = None) -> Document:
        doc = self.documents_service.create_invoice(client, items, doc_date, self.company.vat_rate)
        self.documents = [*self.documents, doc]
        self._persist("documents")
        return doc

    def create_delivery_slip(self, client: Optional[Client], items: Sequence[LineItem],
                             doc_date: Optional[date] = None) -> Document:
        doc = self.documents_service.create_delivery_slip(client, items, doc_date)
        self.documents = [*self.documents, doc]
        self._persist("documents")
        return doc

    def trash_document(self, doc_id: Any) -> None:
        self.documents = trash.soft_delete(self.documents, doc_id)
        self._persist("documents")

    # ---------- Corbeille ---------- #

    def restore(self, kind: TrashKind, obj_id: Any) -> None:
        attr, _ = _KINDS[kind]
        setattr(self, attr, trash.restore(getattr(self, attr), obj_id))
        self._persist(attr)

    def purge(self, kind: TrashKind, obj_id: Any) -> None:
        attr, _ = _KINDS[kind]
        setattr(self, attr, trash.purge(getattr(self, attr), obj_id))
        self._persist(attr)
        logger.info("Suppression définitive (%s) id=%s", kind, obj_id)

    # ---------- Société ---------- #

    def update_company(self, company: CompanyInfo) -> CompanyInfo:
        self.company = self.settings.save_company(company)
        return self.company
