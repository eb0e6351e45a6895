from __future__ import annotations
from datetime import date
from typing import List, Optional, Sequence, Tuple
from PySide6.QtWidgets import (
    QDialog, QVBoxLayout, QFormLayout, QComboBox, QDialogButtonBox,
    QHBoxLayout, QPushButton, QTableWidget, QTableWidgetItem, QHeaderView,
    QSpinBox, QLabel, QDateEdit
)
from PySide6.QtCore import QDate

from core.models.client import Client
from core.models.document import INVOICE, DocType, LineItem
from core.models.product import Product
from core.services.document_service import DocumentService
from core.services.totals import compute_totals, format_currency


class _AddLineDialog(QDialog):
    """Sélecteur simple : un produit du catalogue actif + une quantité."""
    def __init__(self, parent=None, products: Sequence[Product] = (), currency: str = "DH"):
        super().__init__(parent)
        self.setWindowTitle("Ajouter une ligne")
        self.setModal(True)

        self.cb_item = QComboBox()
        for p in products:
            self.cb_item.addItem(f"{p.name} [{p.display_format}] ({format_currency(p.price_ht, currency)})", p)
        self.sp_qty = QSpinBox(); self.sp_qty.setRange(1, 1_000_000); self.sp_qty.setValue(1)
        btns = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)

        form = QFormLayout()
        form.addRow("Produit", self.cb_item)
        form.addRow("Quantité", self.sp_qty)

        lay = QVBoxLayout(self)
        lay.addLayout(form)
        lay.addWidget(btns)

        btns.accepted.connect(self.accept)
        btns.rejected.connect(self.reject)

    def get_line(self) -> Optional[LineItem]:
        product = self.cb_item.currentData()
        if product is None:
            return None
        return DocumentService.make_line(product, int(self.sp_qty.value()))


class DocumentEditor(QDialog):
    """Saisie d'une facture ou d'un BL ; la validation métier est faite par DocumentService."""

    def __init__(self, parent=None, kind: DocType = INVOICE, clients: Sequence[Client] = (),
                 products: Sequence[Product] = (), vat_rate: float = 20.0, currency: str = "DH"):
        super().__init__(parent)
        self.kind = kind
        self.products = list(products)
        self.vat_rate = vat_rate
        self.currency = currency
        self.setWindowTitle("Nouvelle facture" if kind == INVOICE else "Nouveau bon de livraison")
        self.setModal(True)

        self.cb_client = QComboBox()
        self.cb_client.addItem("Choisir un client...", None)
        for c in clients:
            self.cb_client.addItem(f"{c.name} (ICE: {c.ice or 'N/A'})", c)
        self.ed_date = QDateEdit(); self.ed_date.setCalendarPopup(True); self.ed_date.setDate(QDate.currentDate())

        self.lab_total = QLabel("")

        if kind == INVOICE:
            self.tbl = QTableWidget(0, 4)
            self.tbl.setHorizontalHeaderLabels(["Désignation", "Qté", "P.U HT", "Total HT"])
        else:
            self.tbl = QTableWidget(0, 2)
            self.tbl.setHorizontalHeaderLabels(["Désignation", "Quantité"])
        self.tbl.horizontalHeader().setSectionResizeMode(QHeaderView.Stretch)
        self.tbl.setSelectionBehavior(self.tbl.SelectionBehavior.SelectRows)
        self.tbl.setEditTriggers(self.tbl.EditTrigger.NoEditTriggers)

        btn_add = QPushButton("Ajouter une ligne")
        btn_del = QPushButton("Supprimer la ligne")
        btn_add.clicked.connect(self._add_line)
        btn_del.clicked.connect(self._del_line)
        btn_add.setEnabled(bool(self.products))

        top = QFormLayout()
        top.addRow("Client", self.cb_client)
        top.addRow("Date", self.ed_date)

        bar = QHBoxLayout()
        bar.addWidget(btn_add); bar.addWidget(btn_del); bar.addStretch(1); bar.addWidget(self.lab_total)

        btns = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        btns.accepted.connect(self.accept)
        btns.rejected.connect(self.reject)

        lay = QVBoxLayout(self)
        lay.addLayout(top)
        lay.addLayout(bar)
        lay.addWidget(self.tbl)
        lay.addWidget(btns)

        self._lines: List[LineItem] = []
        self._refresh_table()

    # -------- UI helpers --------
    def _refresh_table(self):
        self.tbl.setRowCount(0)
        for ln in self._lines:
            r = self.tbl.rowCount()
            self.tbl.insertRow(r)
            self.tbl.setItem(r, 0, QTableWidgetItem(ln.name))
            self.tbl.setItem(r, 1, QTableWidgetItem(str(ln.quantity)))
            if self.kind == INVOICE:
                self.tbl.setItem(r, 2, QTableWidgetItem(format_currency(ln.price_ht, self.currency)))
                self.tbl.setItem(r, 3, QTableWidgetItem(format_currency(ln.total_ht, self.currency)))
        self.tbl.resizeRowsToContents()
        self._update_totals()

    def _update_totals(self):
        if self.kind != INVOICE:
            self.lab_total.setText(f"{len(self._lines)} ligne(s)")
            return
        t = compute_totals(self._lines, self.vat_rate)
        self.lab_total.setText(
            f"Total HT : {format_currency(t.total_ht, self.currency)} | "
            f"TVA ({self.vat_rate:g}%) : {format_currency(t.total_vat, self.currency)} | "
            f"Total TTC : {format_currency(t.total_ttc, self.currency)}"
        )

    def _add_line(self):
        dlg = _AddLineDialog(self, self.products, self.currency)
        if dlg.exec() == QDialog.Accepted:
            ln = dlg.get_line()
            if ln:
                self._lines.append(ln)
                self._refresh_table()

    def _del_line(self):
        row = self.tbl.currentRow()
        if row < 0: return
        del self._lines[row]
        self._refresh_table()

    # -------- Result --------
    def get_document(self) -> Tuple[Optional[Client], List[LineItem], date]:
        """(client, lignes, date) ; le client vaut None si aucun n'est choisi."""
        return (
            self.cb_client.currentData(),
            [ln.model_copy(deep=True) for ln in self._lines],
            self.ed_date.date().toPython(),
        )
