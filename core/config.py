from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)

# --- Chemins de base ---
ROOT_DIR = Path(__file__).resolve().parents[1]
DATA_DIR = ROOT_DIR / "data"
DEFAULT_API_URL = "https://gestion.maghrebglobal.com/api/"


class AppConfig(BaseModel):
    """Configuration explicite, transmise aux services qui parlent à l'API ou au disque."""
    api_base_url: str = DEFAULT_API_URL
    api_key: str = ""
    api_timeout: float = 30.0

    data_dir: Path = DATA_DIR
    exports_dir: Path = ROOT_DIR / "exports"

    wkhtmltopdf_path: Optional[str] = None

    # Verrou de session local (pas une barrière de sécurité)
    auth_username: Optional[str] = None
    auth_password_hash: Optional[str] = None

    @property
    def settings_path(self) -> Path:
        return self.data_dir / "settings.json"


# ---------- Utils JSON ----------
def load_json(path: os.PathLike | str) -> Any:
    p = Path(path)
    if not p.exists():
        return None
    try:
        return json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Lecture impossible de %s: %s", p, e)
        return None


def dump_json(path: os.PathLike | str, data: Any) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")


def _section(settings: Dict[str, Any], name: str) -> Dict[str, Any]:
    val = settings.get(name)
    return val if isinstance(val, dict) else {}


def load_config(data_dir: Optional[os.PathLike | str] = None) -> AppConfig:
    """
    Construit la config :
    - data/settings.json -> sections api / auth / pdf
    - variables d'env (MG_DATA_DIR, MG_API_URL, MG_API_KEY, MG_API_TIMEOUT, WKHTMLTOPDF) prioritaires
    """
    base = Path(data_dir or os.environ.get("MG_DATA_DIR") or DATA_DIR)
    raw = load_json(base / "settings.json")
    s = raw if isinstance(raw, dict) else {}

    api = _section(s, "api")
    auth = _section(s, "auth")
    pdf = _section(s, "pdf")

    values: Dict[str, Any] = {
        "data_dir": base,
        "api_base_url": api.get("base_url") or DEFAULT_API_URL,
        "api_key": api.get("key") or "",
        "api_timeout": api.get("timeout") or 30.0,
        "wkhtmltopdf_path": pdf.get("wkhtmltopdf_path") or s.get("wkhtmltopdf_path"),
        "auth_username": auth.get("username"),
        "auth_password_hash": auth.get("password_hash"),
    }
    if s.get("exports_dir"):
        values["exports_dir"] = Path(s["exports_dir"])

    # Env
    env_map = {
        "MG_API_URL": "api_base_url",
        "MG_API_KEY": "api_key",
        "MG_API_TIMEOUT": "api_timeout",
        "WKHTMLTOPDF": "wkhtmltopdf_path",
    }
    for env_key, field in env_map.items():
        val = os.environ.get(env_key)
        if val:
            values[field] = val

    return AppConfig(**values)
