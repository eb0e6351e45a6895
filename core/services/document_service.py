from __future__ import annotations

import logging
import re
from datetime import date
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from core.models.client import Client
from core.models.document import DELIVERY_SLIP, INVOICE, DocType, Document, LineItem
from core.models.product import Product
from core.services.api_client import ApiClient, response_id
from core.services.totals import DocumentTotals, compute_totals
from core.services.soft_delete import list_active

logger = logging.getLogger(__name__)

# endpoints de création / PDF et clé du numéro renvoyé par l'API, par type
_CREATE = {INVOICE: ("add_facture.php", "facture_number", "NO-REF"),
           DELIVERY_SLIP: ("add_bl.php", "bl_number", "BL-TEMP")}
_PDF = {INVOICE: "generate_facture_pdf.php", DELIVERY_SLIP: "generate_bl_pdf.php"}


def _slug(text: str) -> str:
    text = (text or "").strip()
    text = re.sub(r'[\\/:*?"<>|\n\r\t]', "_", text)
    return text or "doc"


class DocumentService:
    def __init__(self, api: ApiClient):
        self.api = api

    # ----------- lignes -----------
    @staticmethod
    def make_line(product: Product, quantity: int = 1) -> LineItem:
        """Instantané nom/prix : une modification ultérieure du produit ne touche pas la ligne."""
        return LineItem(product_id=product.id, name=product.name, quantity=quantity, price_ht=product.price_ht)

    @staticmethod
    def _validate(client: Optional[Client], items: Sequence[LineItem]) -> None:
        if client is None:
            raise ValueError("Veuillez sélectionner un client.")
        if not items:
            raise ValueError("Ajoutez au moins un produit.")
        if any(it.product_id in (None, "") for it in items):
            raise ValueError("Certaines lignes sont incomplètes.")

    # ----------- création -----------
    def _create(self, kind: DocType, client: Optional[Client], items: Sequence[LineItem],
                doc_date: Optional[date], totals: DocumentTotals) -> Document:
        self._validate(client, items)
        endpoint, number_key, fallback = _CREATE[kind]
        payload = {
            "client_id": client.id,
            "lignes": [{"produit_id": it.product_id, "quantite": it.quantity} for it in items],
        }
        data = self.api.post(endpoint, payload)
        if not isinstance(data, dict):
            data = {}
        doc_id = response_id(data)
        extra: Dict[str, Any] = {"id": doc_id} if doc_id is not None else {}

        doc = Document(
            **extra,
            type=kind,
            number=str(data.get(number_key) or fallback),
            date=doc_date or date.today(),
            client_id=client.id,
            client_name=client.name or "Inconnu",
            items=[it.model_copy(deep=True) for it in items],
            total_ht=totals.total_ht,
            total_vat=totals.total_vat,
            total_ttc=totals.total_ttc,
            status="validated",
        )
        logger.info("%s %s créé(e) pour %s", kind, doc.number, doc.client_name)
        return doc

    def create_invoice(self, client: Optional[Client], items: Sequence[LineItem],
                       doc_date: Optional[date] = None, vat_rate: float = 20.0) -> Document:
        return self._create(INVOICE, client, items, doc_date, compute_totals(items, vat_rate))

    def create_delivery_slip(self, client: Optional[Client], items: Sequence[LineItem],
                             doc_date: Optional[date] = None) -> Document:
        # un BL ne porte aucun montant : mouvement physique uniquement
        return self._create(DELIVERY_SLIP, client, items, doc_date, DocumentTotals())

    # ----------- PDF serveur -----------
    @staticmethod
    def pdf_endpoint(doc: Document) -> str:
        return f"{_PDF[doc.type]}?id={doc.id}"

    @staticmethod
    def pdf_filename(doc: Document) -> str:
        return f"{doc.type}-{_slug(doc.number)}.pdf"

    def download_pdf(self, doc: Document, out_dir: Path) -> Path:
        return self.api.download(self.pdf_endpoint(doc), self.pdf_filename(doc), out_dir)

    # ----------- historique -----------
    @staticmethod
    def search(documents: Iterable[Optional[Document]], kind: DocType, term: str = "") -> List[Document]:
        """Documents actifs du type demandé, filtrés par numéro ou client, plus récents d'abord."""
        t = (term or "").strip().lower()
        docs = [
            d for d in list_active(documents)
            if d.type == kind and (t in (d.number or "").lower() or t in (d.client_name or "").lower())
        ]
        return list(reversed(docs))
