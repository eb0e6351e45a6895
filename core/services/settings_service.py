from __future__ import annotations
import logging
from pathlib import Path

from pydantic import ValidationError

from core.config import dump_json, load_json
from core.models.company import CompanyInfo

logger = logging.getLogger(__name__)


class SettingsService:
    """Informations société, section "company" de data/settings.json (les autres sections sont préservées)."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load_company(self) -> CompanyInfo:
        s = load_json(self.path) or {}
        raw = s.get("company") if isinstance(s, dict) else None
        if not isinstance(raw, dict):
            return CompanyInfo()
        try:
            return CompanyInfo.model_validate(raw)
        except ValidationError as e:
            logger.warning("Paramètres société invalides, valeurs par défaut utilisées: %s", e)
            return CompanyInfo()

    def save_company(self, company: CompanyInfo) -> CompanyInfo:
        s = load_json(self.path)
        if not isinstance(s, dict):
            s = {}
        s["company"] = company.model_dump(mode="json", by_alias=True)
        dump_json(self.path, s)
        return company
