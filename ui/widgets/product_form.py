from __future__ import annotations
from typing import Any, Dict, Optional

from PySide6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout, QFormLayout, QLineEdit,
    QPushButton, QWidget, QComboBox
)

from core.models.product import Product

# formats papier proposés par défaut (saisie libre possible)
FORMATS = ["", "A4", "A3", "A5", "Rouleau", "Ramette", "Carton"]


class ProductForm(QDialog):
    """
    Formulaire Produit (ajout ou modification).
    - Prix HT saisi en DH, virgule acceptée ("18,50")
    - Le contrôle du prix est fait par CatalogService.parse_price
    """
    def __init__(self, parent: Optional[QWidget] = None, product: Optional[Product] = None):
        super().__init__(parent)
        self.setWindowTitle("Modifier le produit" if product else "Nouveau produit")
        self.product = product

        # Widgets
        self.ed_name = QLineEdit()
        self.ed_price = QLineEdit()
        self.ed_price.setPlaceholderText("ex: 18,50")
        self.cb_format = QComboBox()
        self.cb_format.setEditable(True)
        self.cb_format.addItems(FORMATS)

        # Pré-remplissage
        if product:
            self.ed_name.setText(product.name or "")
            self.ed_price.setText(f"{product.price_ht:.2f}".replace(".", ","))
            self.cb_format.setCurrentText(product.format or "")

        # Layout
        form = QFormLayout()
        form.addRow("Nom*", self.ed_name)
        form.addRow("Prix HT (DH)*", self.ed_price)
        form.addRow("Format", self.cb_format)

        # Boutons
        btn_ok = QPushButton("Valider")
        btn_cancel = QPushButton("Annuler")
        btn_ok.clicked.connect(self.accept)
        btn_cancel.clicked.connect(self.reject)
        bar = QHBoxLayout()
        bar.addStretch(1)
        bar.addWidget(btn_cancel)
        bar.addWidget(btn_ok)

        root = QVBoxLayout(self)
        root.addLayout(form)
        root.addLayout(bar)

        # UX: ENTER valide
        self.ed_name.returnPressed.connect(btn_ok.click)
        self.ed_price.returnPressed.connect(btn_ok.click)
        self.resize(420, 180)

    def get_values(self) -> Dict[str, Any]:
        """Dict prêt pour WorkflowService.save_product (le prix reste brut, validé en aval)."""
        return {
            "name": self.ed_name.text().strip(),
            "price_ht": self.ed_price.text().strip(),
            "format": self.cb_format.currentText().strip() or None,
            "product_id": self.product.id if self.product else None,
        }
