from __future__ import annotations
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QTabWidget, QVBoxLayout, QHBoxLayout, QFormLayout,
    QLabel, QPushButton, QMessageBox, QTableWidget, QLineEdit, QDoubleSpinBox,
    QTableWidgetItem, QHeaderView, QGroupBox, QDialog, QComboBox, QTextEdit
)
import logging
from typing import Any, List, Optional

from core.models.company import CompanyInfo
from core.models.document import DELIVERY_SLIP, INVOICE, DocType, Document
from core.services.api_client import ApiError, describe_error
from core.services.catalog_service import CatalogService
from core.services.client_service import ClientService
from core.services.document_service import DocumentService
from core.services.pdf_service import PdfService
from core.services.totals import format_currency
from core.services.workflow_service import WorkflowService
from ui.widgets.client_form import ClientForm
from ui.widgets.document_editor import DocumentEditor
from ui.widgets.product_form import ProductForm

logger = logging.getLogger(__name__)

# catégories de la corbeille : (clé WorkflowService, titre)
TRASH_TABS = [
    ("invoices", "Factures"),
    ("delivery_slips", "Bons de livraison"),
    ("clients", "Clients"),
    ("products", "Produits"),
]


def _table(headers: List[str]) -> QTableWidget:
    tbl = QTableWidget(0, len(headers))
    tbl.setHorizontalHeaderLabels(headers)
    tbl.horizontalHeader().setSectionResizeMode(QHeaderView.Stretch)
    tbl.setSelectionBehavior(tbl.SelectionBehavior.SelectRows)
    tbl.setEditTriggers(tbl.EditTrigger.NoEditTriggers)
    return tbl


def _fill(tbl: QTableWidget, rows: List[List[Any]]) -> None:
    tbl.setRowCount(0)
    for values in rows:
        r = tbl.rowCount(); tbl.insertRow(r)
        for col, v in enumerate(values):
            tbl.setItem(r, col, QTableWidgetItem("" if v is None else str(v)))
    tbl.resizeRowsToContents()


def _selected_id(tbl: QTableWidget) -> Optional[str]:
    # l'ID est toujours la dernière colonne
    row = tbl.currentRow()
    if row < 0: return None
    item = tbl.item(row, tbl.columnCount() - 1)
    return item.text() if item else None


class MainWindow(QMainWindow):
    def __init__(self, workflow: WorkflowService, pdf: PdfService):
        super().__init__()
        self.setWindowTitle("Maghreb Global - Gestion commerciale")
        self.resize(1280, 800)
        self.workflow = workflow
        self.pdf = pdf

        central = QWidget()
        root = QVBoxLayout(central)

        bar = QHBoxLayout()
        btn_invoice = QPushButton("Nouvelle facture")
        btn_bl = QPushButton("Nouveau BL")
        btn_sync = QPushButton("Synchroniser")
        bar.addWidget(btn_invoice); bar.addWidget(btn_bl); bar.addStretch(1); bar.addWidget(btn_sync)
        root.addLayout(bar)
        btn_invoice.clicked.connect(lambda: self._document_new(INVOICE))
        btn_bl.clicked.connect(lambda: self._document_new(DELIVERY_SLIP))
        btn_sync.clicked.connect(self.sync)

        self.tabs = QTabWidget()
        root.addWidget(self.tabs, 1)
        self.setCentralWidget(central)

        self.tabs.addTab(self._dashboard_tab(), "Tableau de bord")
        self.tabs.addTab(self._clients_tab(), "Clients")
        self.tabs.addTab(self._products_tab(), "Produits")
        self.tabs.addTab(self._history_tab(), "Historique")
        self.trash_tab_index = self.tabs.addTab(self._trash_tab(), "Corbeille")
        self.tabs.addTab(self._settings_tab(), "Paramètres")

        self._refresh_all()

    # ==================== COMMUN ====================
    def _show_error(self, exc: BaseException):
        n = describe_error(exc)
        if n.level == "warning":
            QMessageBox.warning(self, n.title, n.description)
        else:
            QMessageBox.critical(self, n.title, n.description)

    def _refresh_all(self):
        self._refresh_dashboard()
        self._refresh_clients()
        self._refresh_products()
        self._refresh_history()
        self._refresh_trash()

    def sync(self):
        ok = self.workflow.refresh()
        self._refresh_all()
        n = self.workflow.last_notification
        if ok or n is None:
            self.statusBar().showMessage("Synchronisation terminée", 5000)
        else:
            # données du cache conservées
            self.statusBar().showMessage(f"{n.title} : {n.description} (données locales affichées)", 10000)

    # ==================== TABLEAU DE BORD ====================
    def _dashboard_tab(self):
        w = QWidget()
        root = QVBoxLayout(w)
        grp = QGroupBox("Indicateurs"); lay = QHBoxLayout(grp)
        self.lab_revenue = QLabel(); self.lab_invoices = QLabel()
        self.lab_deliveries = QLabel(); self.lab_clients = QLabel()
        for lab in (self.lab_revenue, self.lab_invoices, self.lab_deliveries, self.lab_clients):
            lay.addWidget(lab)
        root.addWidget(grp)

        root.addWidget(QLabel("Documents récents"))
        self.tbl_recent = _table(["Type", "Numéro", "Client", "Date", "Total TTC", "ID"])
        root.addWidget(self.tbl_recent, 1)
        return w

    def _refresh_dashboard(self):
        s = self.workflow.stats()
        cur = self.workflow.company.currency
        self.lab_revenue.setText(f"Chiffre d'affaires : {format_currency(s.total_revenue, cur)}")
        self.lab_invoices.setText(f"Factures : {s.invoice_count}")
        self.lab_deliveries.setText(f"Bons de livraison : {s.delivery_count}")
        self.lab_clients.setText(f"Clients : {s.client_count}")
        _fill(self.tbl_recent, [
            [d.type, d.number, d.client_name, d.date.strftime("%d/%m/%Y"),
             format_currency(d.total_ttc, cur) if d.is_invoice else "-", d.id]
            for d in self.workflow.recent_documents()
        ])

    # ==================== CLIENTS ====================
    def _clients_tab(self):
        w = QWidget()
        root = QVBoxLayout(w)
        bar = QHBoxLayout()
        self.ed_client_search = QLineEdit(); self.ed_client_search.setPlaceholderText("Rechercher (nom, ICE)...")
        btn_new = QPushButton("Nouveau client")
        btn_del = QPushButton("Supprimer")
        bar.addWidget(self.ed_client_search, 1); bar.addWidget(btn_new); bar.addWidget(btn_del)
        root.addLayout(bar)

        self.tbl_clients = _table(["Nom", "ICE", "Téléphone", "Adresse", "ID"])
        root.addWidget(self.tbl_clients, 1)

        self.ed_client_search.textChanged.connect(self._refresh_clients)
        btn_new.clicked.connect(self._client_new)
        btn_del.clicked.connect(self._client_delete)
        return w

    def _refresh_clients(self):
        items = ClientService.search(self.workflow.active_clients(), self.ed_client_search.text())
        _fill(self.tbl_clients, [[c.name, c.ice or "N/A", c.phone, c.address, c.id] for c in items])

    def _client_new(self):
        dlg = ClientForm(self)
        if dlg.exec() != QDialog.Accepted:
            return
        values = dlg.get_values()
        if not values:
            QMessageBox.warning(self, "Validation", "Le nom du client est requis.")
            return
        try:
            self.workflow.add_client(**values)
        except ApiError as e:
            self._show_error(e); return
        self._refresh_all()

    def _client_delete(self):
        cid = _selected_id(self.tbl_clients)
        if not cid:
            QMessageBox.information(self, "Clients", "Sélectionne une ligne d’abord.")
            return
        if QMessageBox.question(self, "Suppression", "Mettre ce client à la corbeille ?") != QMessageBox.Yes:
            return
        try:
            self.workflow.delete_client(cid)
        except ApiError as e:
            self._show_error(e); return
        self._refresh_all()

    # ==================== PRODUITS ====================
    def _products_tab(self):
        w = QWidget()
        root = QVBoxLayout(w)
        bar = QHBoxLayout()
        self.ed_product_search = QLineEdit(); self.ed_product_search.setPlaceholderText("Rechercher (nom, format)...")
        btn_new = QPushButton("Nouveau produit")
        btn_edit = QPushButton("Modifier")
        btn_del = QPushButton("Supprimer")
        bar.addWidget(self.ed_product_search, 1)
        for b in (btn_new, btn_edit, btn_del): bar.addWidget(b)
        root.addLayout(bar)

        self.tbl_products = _table(["Nom", "Format", "Prix HT", "ID"])
        root.addWidget(self.tbl_products, 1)

        self.ed_product_search.textChanged.connect(self._refresh_products)
        btn_new.clicked.connect(lambda: self._product_edit(new=True))
        btn_edit.clicked.connect(lambda: self._product_edit(new=False))
        btn_del.clicked.connect(self._product_delete)
        return w

    def _refresh_products(self):
        cur = self.workflow.company.currency
        items = CatalogService.search(self.workflow.active_products(), self.ed_product_search.text())
        _fill(self.tbl_products, [[p.name, p.display_format, format_currency(p.price_ht, cur), p.id] for p in items])

    def _product_by_id(self, pid: str):
        # les ID API sont numériques, le tableau ne contient que du texte
        return next((p for p in self.workflow.active_products() if str(p.id) == pid), None)

    def _product_edit(self, new: bool):
        current = None
        if not new:
            pid = _selected_id(self.tbl_products)
            current = self._product_by_id(pid) if pid else None
            if not current:
                QMessageBox.information(self, "Produits", "Sélectionne une ligne d’abord.")
                return
        dlg = ProductForm(self, product=current)
        if dlg.exec() != QDialog.Accepted:
            return
        try:
            self.workflow.save_product(**dlg.get_values())
        except ValueError as e:
            QMessageBox.warning(self, "Validation", str(e)); return
        except ApiError as e:
            self._show_error(e); return
        self._refresh_all()

    def _product_delete(self):
        pid = _selected_id(self.tbl_products)
        product = self._product_by_id(pid) if pid else None
        if not product:
            QMessageBox.information(self, "Produits", "Sélectionne une ligne d’abord.")
            return
        if QMessageBox.question(self, "Suppression", f"Supprimer « {product.name} » ?") != QMessageBox.Yes:
            return
        try:
            self.workflow.delete_product(product.id)
        except ApiError as e:
            if e.status == 409:
                QMessageBox.warning(self, "Produits", str(e))
            else:
                self._show_error(e)
            return
        self._refresh_all()

    # ==================== DOCUMENTS ====================
    def _document_new(self, kind: DocType):
        if not self.workflow.active_clients():
            QMessageBox.information(self, "Documents", "Ajoute d'abord un client.")
            return
        dlg = DocumentEditor(
            self, kind=kind,
            clients=self.workflow.active_clients(),
            products=self.workflow.active_products(),
            vat_rate=self.workflow.company.vat_rate,
            currency=self.workflow.company.currency,
        )
        if dlg.exec() != QDialog.Accepted:
            return
        client, items, doc_date = dlg.get_document()
        try:
            if kind == INVOICE:
                doc = self.workflow.create_invoice(client, items, doc_date)
            else:
                doc = self.workflow.create_delivery_slip(client, items, doc_date)
        except ValueError as e:
            QMessageBox.warning(self, "Validation", str(e)); return
        except ApiError as e:
            self._show_error(e); return
        self._refresh_all()
        QMessageBox.information(self, doc.type, f"{doc.type} N° {doc.number} enregistré(e).")

    # ==================== HISTORIQUE ====================
    def _history_tab(self):
        w = QWidget()
        root = QVBoxLayout(w)
        bar = QHBoxLayout()
        self.cb_history_kind = QComboBox()
        self.cb_history_kind.addItem("Factures", INVOICE)
        self.cb_history_kind.addItem("Bons de livraison", DELIVERY_SLIP)
        self.ed_history_search = QLineEdit(); self.ed_history_search.setPlaceholderText("Rechercher (numéro, client)...")
        btn_pdf_api = QPushButton("Télécharger PDF")
        btn_pdf_local = QPushButton("PDF local")
        btn_trash = QPushButton("Mettre à la corbeille")
        bar.addWidget(self.cb_history_kind); bar.addWidget(self.ed_history_search, 1)
        for b in (btn_pdf_api, btn_pdf_local, btn_trash): bar.addWidget(b)
        root.addLayout(bar)

        self.tbl_history = _table(["Numéro", "Client", "Date", "Total TTC", "ID"])
        root.addWidget(self.tbl_history, 1)

        self.cb_history_kind.currentIndexChanged.connect(self._refresh_history)
        self.ed_history_search.textChanged.connect(self._refresh_history)
        btn_pdf_api.clicked.connect(self._history_download_pdf)
        btn_pdf_local.clicked.connect(self._history_local_pdf)
        btn_trash.clicked.connect(self._history_trash)
        return w

    def _refresh_history(self):
        cur = self.workflow.company.currency
        kind = self.cb_history_kind.currentData()
        docs = DocumentService.search(self.workflow.documents, kind, self.ed_history_search.text())
        _fill(self.tbl_history, [
            [d.number, d.client_name, d.date.strftime("%d/%m/%Y"),
             format_currency(d.total_ttc, cur) if d.is_invoice else "-", d.id]
            for d in docs
        ])

    def _selected_document(self) -> Optional[Document]:
        did = _selected_id(self.tbl_history)
        if not did:
            QMessageBox.information(self, "Historique", "Sélectionne un document.")
            return None
        return next((d for d in self.workflow.active_documents() if d.id == did), None)

    def _history_download_pdf(self):
        doc = self._selected_document()
        if not doc: return
        try:
            out = self.workflow.documents_service.download_pdf(doc, self.workflow.config.exports_dir / "documents")
        except ApiError as e:
            self._show_error(e); return
        QMessageBox.information(self, "PDF", f"Fichier enregistré :\n{out}")

    def _history_local_pdf(self):
        doc = self._selected_document()
        if not doc: return
        try:
            out = self.pdf.export_pdf(doc, self.workflow.company, self.workflow.find_client(doc.client_id))
        except (OSError, RuntimeError) as e:
            logger.exception("Échec du rendu PDF local")
            QMessageBox.critical(self, "PDF", str(e)); return
        QMessageBox.information(self, "PDF", f"Fichier généré :\n{out}")

    def _history_trash(self):
        doc = self._selected_document()
        if not doc: return
        if QMessageBox.question(self, "Corbeille", f"Mettre {doc.number} à la corbeille ?") == QMessageBox.Yes:
            self.workflow.trash_document(doc.id)
            self._refresh_all()

    # ==================== CORBEILLE ====================
    def _trash_tab(self):
        w = QWidget()
        root = QVBoxLayout(w)
        self.trash_tables = {}
        sub = QTabWidget()
        for kind, title in TRASH_TABS:
            page = QWidget(); lay = QVBoxLayout(page)
            bar = QHBoxLayout()
            btn_restore = QPushButton("Restaurer")
            btn_purge = QPushButton("Supprimer définitivement")
            bar.addStretch(1); bar.addWidget(btn_restore); bar.addWidget(btn_purge)
            lay.addLayout(bar)
            tbl = _table(["Libellé", "Détail", "Supprimé le", "ID"])
            lay.addWidget(tbl, 1)
            self.trash_tables[kind] = tbl
            btn_restore.clicked.connect(lambda _=False, k=kind: self._trash_restore(k))
            btn_purge.clicked.connect(lambda _=False, k=kind: self._trash_purge(k))
            sub.addTab(page, title)
        root.addWidget(sub)
        return w

    def _trash_row(self, kind: str, e) -> List[Any]:
        when = e.deleted_at.strftime("%d/%m/%Y %H:%M") if e.deleted_at else ""
        if kind == "clients":
            return [e.name, e.ice or "N/A", when, e.id]
        if kind == "products":
            return [e.name, format_currency(e.price_ht, self.workflow.company.currency), when, e.id]
        return [e.number, e.client_name, when, e.id]

    def _refresh_trash(self):
        for kind, tbl in self.trash_tables.items():
            _fill(tbl, [self._trash_row(kind, e) for e in self.workflow.trashed(kind)])
        n = self.workflow.trash_count()
        self.tabs.setTabText(self.trash_tab_index, f"Corbeille ({n})" if n else "Corbeille")

    def _trash_selected(self, kind: str) -> Optional[Any]:
        oid = _selected_id(self.trash_tables[kind])
        if not oid:
            QMessageBox.information(self, "Corbeille", "Sélectionne une ligne d’abord.")
            return None
        # ID produit numérique côté API
        return next((e.id for e in self.workflow.trashed(kind) if str(e.id) == oid), None)

    def _trash_restore(self, kind: str):
        oid = self._trash_selected(kind)
        if oid is None: return
        self.workflow.restore(kind, oid)
        self._refresh_all()

    def _trash_purge(self, kind: str):
        oid = self._trash_selected(kind)
        if oid is None: return
        if QMessageBox.question(self, "Suppression définitive",
                                "Cette action est irréversible. Continuer ?") != QMessageBox.Yes:
            return
        self.workflow.purge(kind, oid)
        self._refresh_all()

    # ==================== PARAMÈTRES ====================
    def _settings_tab(self):
        w = QWidget(); root = QVBoxLayout(w)
        c = self.workflow.company

        self.ed_co_name = QLineEdit(c.name)
        self.ed_co_activity = QLineEdit(c.activity)
        self.ed_co_address = QTextEdit(); self.ed_co_address.setPlainText(c.address); self.ed_co_address.setFixedHeight(60)
        self.ed_co_phones = QLineEdit(" / ".join(c.phones))
        self.ed_co_email = QLineEdit(c.email or "")
        self.ed_co_ice = QLineEdit(c.ice)
        self.ed_co_rc = QLineEdit(c.rc)
        self.ed_co_if = QLineEdit(c.if_number)
        self.ed_co_bank = QLineEdit(c.bank_details)
        self.sp_vat = QDoubleSpinBox(); self.sp_vat.setRange(0, 100); self.sp_vat.setDecimals(2); self.sp_vat.setSuffix(" %")
        self.sp_vat.setValue(c.vat_rate)

        form = QFormLayout()
        form.addRow("Raison sociale", self.ed_co_name)
        form.addRow("Activité", self.ed_co_activity)
        form.addRow("Adresse", self.ed_co_address)
        form.addRow("Téléphones (séparés par /)", self.ed_co_phones)
        form.addRow("Email", self.ed_co_email)
        form.addRow("ICE", self.ed_co_ice)
        form.addRow("RC", self.ed_co_rc)
        form.addRow("IF", self.ed_co_if)
        form.addRow("Coordonnées bancaires", self.ed_co_bank)
        form.addRow("Taux de TVA", self.sp_vat)
        root.addLayout(form)

        btn_save = QPushButton("Enregistrer")
        btn_save.clicked.connect(self._settings_save)
        bar = QHBoxLayout(); bar.addStretch(1); bar.addWidget(btn_save)
        root.addLayout(bar)

        cfg = self.workflow.config
        root.addWidget(QLabel(f"API : {cfg.api_base_url}"))
        root.addWidget(QLabel(f"Paramètres : {cfg.settings_path}"))
        root.addStretch(1)
        return w

    def _settings_save(self):
        company = self.workflow.company.model_copy(update={
            "name": self.ed_co_name.text().strip() or CompanyInfo().name,
            "activity": self.ed_co_activity.text().strip(),
            "address": self.ed_co_address.toPlainText().strip(),
            "phones": [p.strip() for p in self.ed_co_phones.text().split("/") if p.strip()],
            "email": self.ed_co_email.text().strip() or None,
            "ice": self.ed_co_ice.text().strip(),
            "rc": self.ed_co_rc.text().strip(),
            "if_number": self.ed_co_if.text().strip(),
            "bank_details": self.ed_co_bank.text().strip(),
            "vat_rate": float(self.sp_vat.value()),
        })
        try:
            self.workflow.update_company(company)
        except OSError as e:
            QMessageBox.critical(self, "Paramètres", str(e)); return
        self._refresh_all()
        QMessageBox.information(self, "Paramètres", "Informations société enregistrées.")
