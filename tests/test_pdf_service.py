from __future__ import annotations

from datetime import date

import pytest

from core.models.client import Client
from core.models.company import CompanyInfo
from core.models.document import DELIVERY_SLIP, INVOICE, Document, LineItem
from core.services import pdf_service
from core.services.pdf_service import PdfService, find_wkhtmltopdf

COMPANY = CompanyInfo(name="Maghreb Global", ice="002233", rc="12345", if_number="887766",
                      bank_details="RIB 0000", phones=["0537 00 00 00"])
CLIENT = Client(id="c1", name="Papeterie Atlas", ice="001122", address="Bd Zerktouni, Casablanca")


def _doc(kind=INVOICE):
    totals = (200, 40, 240) if kind == INVOICE else (0, 0, 0)
    return Document(
        id="9", type=kind, number="FAC-2024-009" if kind == INVOICE else "BL-2024-004",
        date=date(2024, 6, 3), client_id="c1", client_name="Papeterie Atlas",
        items=[LineItem(product_id=1, name="Ramette A4", quantity=2, price_ht=100)],
        total_ht=totals[0], total_vat=totals[1], total_ttc=totals[2],
    )


@pytest.fixture
def pdf(config):
    return PdfService(config)


def test_invoice_html(pdf):
    html = pdf.render_html(_doc(), COMPANY, CLIENT)

    assert "FACTURE" in html
    assert "FAC-2024-009" in html
    assert "03/06/2024" in html
    assert "P.U HT" in html
    assert "TVA (20%)" in html
    assert "240,00 DH" in html
    assert "Arrêté la présente facture à la somme de :" in html
    assert "DEUX CENT QUARANTE DIRHAMS PILE" in html
    assert "Signature Client" not in html
    assert "ICE: 001122" in html
    assert "IF: 887766" in html


def test_delivery_slip_html(pdf):
    html = pdf.render_html(_doc(DELIVERY_SLIP), COMPANY, CLIENT)

    assert "BON DE LIVRAISON" in html
    assert "Signature Client" in html
    assert "Quantité" in html
    assert "TOTAL TTC" not in html
    assert "Arrêté" not in html
    assert "P.U HT" not in html


def test_unknown_client_falls_back_to_document_name(pdf):
    html = pdf.render_html(_doc(), COMPANY, None)
    assert "Papeterie Atlas" in html
    assert "ICE: N/A" in html


def test_find_wkhtmltopdf_prefers_configured_path(tmp_path, monkeypatch):
    exe = tmp_path / "wkhtmltopdf"
    exe.write_text("")
    assert find_wkhtmltopdf(f'"{exe}"') == str(exe)

    monkeypatch.setattr(pdf_service, "which", lambda name: None)
    assert find_wkhtmltopdf(str(tmp_path / "absent")) is None


def test_export_falls_back_to_weasyprint(pdf, tmp_path, monkeypatch):
    calls = {}

    def fake_from_string(html, out, **kwargs):
        raise OSError("wkhtmltopdf a planté")

    def fake_weasy(html, out_path, base_url):
        calls["html"] = html
        out_path.write_bytes(b"%PDF")

    monkeypatch.setattr(pdf_service, "find_wkhtmltopdf", lambda configured=None: "/opt/wkhtmltopdf")
    monkeypatch.setattr(pdf_service.pdfkit, "configuration", lambda **kw: object())
    monkeypatch.setattr(pdf_service.pdfkit, "from_string", fake_from_string)
    monkeypatch.setattr(pdf_service, "_render_pdf_with_weasyprint", fake_weasy)

    out = pdf.export_pdf(_doc(), COMPANY, CLIENT, out_dir=tmp_path / "out")

    assert out == tmp_path / "out" / "Facture-FAC-2024-009.pdf"
    assert out.read_bytes() == b"%PDF"
    assert "FAC-2024-009" in calls["html"]


def test_export_uses_wkhtmltopdf_when_available(pdf, config, monkeypatch):
    seen = {}

    def fake_from_string(html, out, **kwargs):
        seen["out"] = out
        seen["configuration"] = kwargs["configuration"]

    monkeypatch.setattr(pdf_service, "find_wkhtmltopdf", lambda configured=None: "/opt/wkhtmltopdf")
    monkeypatch.setattr(pdf_service.pdfkit, "configuration", lambda **kw: kw)
    monkeypatch.setattr(pdf_service.pdfkit, "from_string", fake_from_string)

    out = pdf.export_pdf(_doc(DELIVERY_SLIP), COMPANY, CLIENT)

    assert out == config.exports_dir / "documents" / "Bon de Livraison-BL-2024-004.pdf"
    assert seen["out"] == str(out)
    assert seen["configuration"] == {"wkhtmltopdf": "/opt/wkhtmltopdf"}
