from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from core.models.product import Product
from core.services.api_client import ApiClient, ApiError, ProductInUseError, response_id

logger = logging.getLogger(__name__)


# ----------------- Service Catalogue ----------------- #

class CatalogService:
    """
    Catalogue produits, adossé à l'API.
    - Hydrate JSON -> Product (nom/prix_ht/priceHT acceptés)
    - Prix saisi "à la française" (virgule) toléré
    - 409 à la suppression -> ProductInUseError
    """

    def __init__(self, api: ApiClient) -> None:
        self.api = api

    # ---------- Helpers (prix) ---------- #

    @staticmethod
    def parse_price(value: Union[str, float, int, None]) -> float:
        """Accepte 18.5, "18,50", " 18.50 " ; lève ValueError sinon."""
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("Le prix doit être un nombre valide.")
        if isinstance(value, str):
            value = value.replace(",", ".").replace(" ", "")
        try:
            return float(value)
        except (TypeError, ValueError) as e:
            raise ValueError("Le prix doit être un nombre valide.") from e

    # ---------- Produits ---------- #

    def fetch_products(self) -> List[Product]:
        data = self.api.get("produits.php")
        out: List[Product] = []
        for d in data if isinstance(data, list) else []:
            try:
                out.append(Product.model_validate(d))
            except ValidationError:
                logger.warning("Produit ignoré (données invalides): %r", d)
                continue
        return out

    def save_product(
        self,
        name: str,
        price_ht: Union[str, float],
        format: Optional[str] = None,
        product_id: Optional[Union[int, str]] = None,
    ) -> Product:
        """Ajout (add_produit.php) ou mise à jour si product_id est fourni (update_produit.php)."""
        name = (name or "").strip()
        if not name:
            raise ValueError("Le nom du produit est requis.")
        price = self.parse_price(price_ht)
        fmt = (format or "").strip() or None

        payload: Dict[str, Any] = {"nom": name, "prix_ht": price, "format": fmt}
        endpoint = "add_produit.php"
        if product_id is not None:
            endpoint = "update_produit.php"
            payload["id"] = product_id

        data = self.api.post(endpoint, payload)
        values: Dict[str, Any] = {"name": name, "price_ht": price, "format": fmt}
        if product_id is not None:
            values["id"] = product_id
            return Product(**values)

        if response_id(data) is not None:
            # id brut du serveur (souvent un entier), comme dans produits.php
            return Product(id=data["id"], **values)
        return self._find_created(Product(**values))

    def _find_created(self, product: Product) -> Product:
        """Relit le catalogue pour retrouver l'id serveur d'un produit que l'API n'a pas renvoyé."""
        try:
            created = [p for p in self.fetch_products() if (p.name, p.format) == (product.name, product.format)]
        except ApiError as e:
            logger.warning("Produit %s ajouté mais catalogue illisible (%s), id local conservé", product.name, e)
            return product
        if not created:
            logger.warning("Produit %s introuvable après ajout, id local conservé", product.name)
            return product
        return created[-1]

    def delete_product(self, product_id: Union[int, str]) -> None:
        try:
            self.api.post("delete_produit.php", {"id": product_id})
        except ApiError as e:
            if e.status == 409:
                raise ProductInUseError(
                    "Suppression impossible : ce produit est utilisé dans une facture ou un BL existant.",
                    status=409,
                ) from e
            raise

    @staticmethod
    def search(products: Iterable[Product], term: str) -> List[Product]:
        t = (term or "").strip().lower()
        return [
            p for p in products
            if p is not None and (t in (p.name or "").lower() or t in (p.format or "inconnu").lower())
        ]
