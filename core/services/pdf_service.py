# core/services/pdf_service.py
from __future__ import annotations
import logging
import os
from pathlib import Path
from shutil import which
from typing import Optional

import pdfkit  # utilisé si wkhtmltopdf dispo
from jinja2 import Environment, FileSystemLoader, select_autoescape

from core.config import AppConfig
from core.models.client import Client
from core.models.company import CompanyInfo
from core.models.document import Document
from core.services.document_service import DocumentService
from core.services.totals import amount_to_words, format_currency

logger = logging.getLogger(__name__)

# --- Chemins de base ---
TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates" / "pdf"
STYLESHEET = "stylesheet.css"


# ---------- PDF helpers ----------
def _clean_path(p: str) -> str:
    """Corrige 'C\\:\\Program Files\\...' -> 'C:\\Program Files\\...' et normalise."""
    if not p:
        return ""
    p = p.strip().strip('"').strip("'")
    p = p.replace("\\:", ":")
    return os.path.normpath(p)


def find_wkhtmltopdf(configured: Optional[str] = None) -> Optional[str]:
    """
    Localise wkhtmltopdf :
    - chemin de la config (settings.json pdf.wkhtmltopdf_path ou env WKHTMLTOPDF)
    - chemins Windows connus
    - PATH
    """
    if configured:
        path = _clean_path(configured)
        if Path(path).is_file():
            return path

    for c in (
        r"C:\Program Files\wkhtmltopdf\bin\wkhtmltopdf.exe",
        r"C:\Program Files (x86)\wkhtmltopdf\bin\wkhtmltopdf.exe",
    ):
        if Path(c).is_file():
            return c

    found = which("wkhtmltopdf")
    return _clean_path(found) if found else None


def _render_pdf_with_weasyprint(html: str, out_path: Path, base_url: Optional[str]) -> None:
    """Moteur de secours : WeasyPrint (extra optionnel 'weasyprint')."""
    try:
        from weasyprint import HTML, CSS
    except ImportError as e:
        raise RuntimeError(
            "Génération PDF impossible : wkhtmltopdf introuvable et WeasyPrint absent. "
            "Renseignez pdf.wkhtmltopdf_path dans settings.json ou installez l'extra 'weasyprint'."
        ) from e

    css_file = TEMPLATES_DIR / STYLESHEET
    styles = [CSS(filename=str(css_file))] if css_file.exists() else None
    HTML(string=html, base_url=base_url).write_pdf(str(out_path), stylesheets=styles)


# ---------- Service ----------
class PdfService:
    """Rendu local facture / BL : HTML Jinja2 puis wkhtmltopdf (pdfkit), sinon WeasyPrint."""

    def __init__(self, config: AppConfig):
        self.config = config
        self.env = Environment(
            loader=FileSystemLoader(str(TEMPLATES_DIR)),
            autoescape=select_autoescape(["html", "xml"]),
        )

    def render_html(self, doc: Document, company: CompanyInfo, client: Optional[Client] = None) -> str:
        tpl = self.env.get_template("document.html")
        money = lambda v: format_currency(v, company.currency)  # noqa: E731

        ctx = {
            "doc": {
                "title": doc.type.upper(),
                "number": doc.number,
                "date": doc.date.strftime("%d/%m/%Y"),
                "is_invoice": doc.is_invoice,
                "lines": [
                    {
                        "name": it.name,
                        "qty": it.quantity,
                        "unit_price_ht": money(it.price_ht),
                        "total_ht": money(it.total_ht),
                    } for it in doc.items
                ],
                "total_ht": money(doc.total_ht),
                "vat_rate": f"{company.vat_rate:g}",
                "total_vat": money(doc.total_vat),
                "total_ttc": money(doc.total_ttc),
                # mention légale, factures uniquement
                "amount_words": amount_to_words(doc.total_ttc).upper() if doc.is_invoice else "",
            },
            "client": {
                "name": (client.name if client else None) or doc.client_name,
                "ice": (client.ice if client else None) or "N/A",
                "address": (client.address if client else None) or "N/A",
            },
            "company": company.model_dump(),
        }
        return tpl.render(**ctx)

    def export_pdf(self, doc: Document, company: CompanyInfo, client: Optional[Client] = None,
                   out_dir: Optional[Path] = None) -> Path:
        """
        Génère le PDF du document dans exports/documents (ou out_dir).
        Essaie wkhtmltopdf (pdfkit) en priorité, sinon fallback WeasyPrint.
        """
        html = self.render_html(doc, company, client)

        exports_dir = Path(out_dir) if out_dir else (self.config.exports_dir / "documents")
        exports_dir.mkdir(parents=True, exist_ok=True)
        out_path = exports_dir / DocumentService.pdf_filename(doc)

        base_url = str(TEMPLATES_DIR.resolve())

        # 1) wkhtmltopdf d'abord
        wkhtml = find_wkhtmltopdf(self.config.wkhtmltopdf_path)
        if wkhtml:
            try:
                config = pdfkit.configuration(wkhtmltopdf=wkhtml)
                options = {
                    "enable-local-file-access": None,
                    "quiet": "",
                    "encoding": "UTF-8",
                }
                css_path = str((TEMPLATES_DIR / STYLESHEET).resolve())
                pdfkit.from_string(html, str(out_path), options=options, configuration=config, css=css_path)
                return out_path
            except OSError as e:  # pdfkit lève IOError si wkhtmltopdf échoue
                logger.warning("Échec wkhtmltopdf (%s). Fallback WeasyPrint...", e)

        # 2) Fallback WeasyPrint
        _render_pdf_with_weasyprint(html, out_path, base_url=base_url)
        return out_path
