from __future__ import annotations
import logging
import sys

from PySide6.QtWidgets import QApplication, QDialog

from core.config import load_config
from core.services.auth_service import AuthService
from core.services.pdf_service import PdfService
from core.services.workflow_service import WorkflowService
from ui.main_window import MainWindow
from ui.widgets.login_dialog import LoginDialog

logger = logging.getLogger(__name__)


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = QApplication(sys.argv)
    config = load_config()

    auth = AuthService(config)
    if auth.enabled and LoginDialog(auth).exec() != QDialog.Accepted:
        return 0

    workflow = WorkflowService(config)
    if not config.api_key:
        logger.warning("Aucune clé API configurée (settings.json api.key ou MG_API_KEY)")

    win = MainWindow(workflow, PdfService(config))
    win.show()
    # cache affiché d'abord, puis synchronisation
    win.sync()
    try:
        return app.exec()
    finally:
        workflow.api.close()


if __name__ == "__main__":
    sys.exit(main())
