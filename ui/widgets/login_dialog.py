from __future__ import annotations
from PySide6.QtWidgets import QDialog, QVBoxLayout, QFormLayout, QLineEdit, QDialogButtonBox, QLabel

from core.services.auth_service import AuthService


class LoginDialog(QDialog):
    """Verrou d'ouverture de session ; accepté seulement si AuthService.verify réussit."""

    def __init__(self, auth: AuthService, parent=None):
        super().__init__(parent)
        self.auth = auth
        self.setWindowTitle("Maghreb Global - Connexion")
        self.setModal(True)

        self.ed_user = QLineEdit()
        self.ed_password = QLineEdit()
        self.ed_password.setEchoMode(QLineEdit.EchoMode.Password)
        self.lab_error = QLabel("")
        self.lab_error.setStyleSheet("color:#d9534f;")

        form = QFormLayout()
        form.addRow("Identifiant", self.ed_user)
        form.addRow("Mot de passe", self.ed_password)

        btns = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        btns.accepted.connect(self._try_login)
        btns.rejected.connect(self.reject)
        self.ed_password.returnPressed.connect(self._try_login)

        lay = QVBoxLayout(self)
        lay.addLayout(form)
        lay.addWidget(self.lab_error)
        lay.addWidget(btns)

    def _try_login(self):
        if self.auth.verify(self.ed_user.text().strip(), self.ed_password.text()):
            self.accept()
            return
        self.lab_error.setText("Identifiants incorrects")
        self.ed_password.clear()
        self.ed_password.setFocus()
