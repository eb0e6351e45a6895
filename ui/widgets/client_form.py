from __future__ import annotations
from PySide6.QtWidgets import (
    QDialog, QVBoxLayout, QFormLayout, QLineEdit, QTextEdit, QDialogButtonBox
)
from PySide6.QtCore import Qt
from typing import Dict, Optional


class ClientForm(QDialog):
    """Nouveau client : nom obligatoire, ICE / téléphone / adresse facultatifs."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Nouveau client")
        self.setModal(True)

        self.ed_name = QLineEdit()
        self.ed_name.setPlaceholderText("Raison sociale")
        self.ed_ice = QLineEdit()
        self.ed_ice.setPlaceholderText("15 chiffres")
        self.ed_phone = QLineEdit()
        self.ed_address = QTextEdit()
        self.ed_address.setFixedHeight(70)

        form = QFormLayout()
        form.addRow("Nom (obligatoire)", self.ed_name)
        form.addRow("ICE", self.ed_ice)
        form.addRow("Téléphone", self.ed_phone)
        form.addRow("Adresse", self.ed_address)

        btns = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        btns.accepted.connect(self.accept)
        btns.rejected.connect(self.reject)

        lay = QVBoxLayout(self)
        lay.addLayout(form)
        lay.addWidget(btns)

    def get_values(self) -> Optional[Dict[str, str]]:
        """Champs prêts pour WorkflowService.add_client, ou None si le nom manque."""
        name = self.ed_name.text().strip()
        if not name:
            self.ed_name.setFocus(Qt.FocusReason.ActiveWindowFocusReason)
            return None
        return {
            "name": name,
            "ice": self.ed_ice.text().strip(),
            "phone": self.ed_phone.text().strip(),
            "address": self.ed_address.toPlainText().strip(),
        }
