from __future__ import annotations

import glob
import json
import logging
import shutil
import threading
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Generic, Iterable, List, Mapping, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _json_default(o: Any) -> Any:
    if isinstance(o, (date, datetime)):
        return o.isoformat()
    return str(o)


class JsonCache(Generic[M]):
    """
    Miroir local d'une collection (clients, produits, documents).
    - La collection entière est réécrite à chaque changement
    - N'écrit pas si le contenu ne change pas (réduction du bruit et des .bak)
    - Rotation de backups (backup_enabled, backup_keep)
    - Fichier corrompu → copié en .corrupt.json, lu comme liste vide
    """

    def __init__(
        self,
        filepath: Union[str, Path],
        model: Type[M],
        *,
        backup_enabled: bool = True,
        backup_keep: int = 5,
    ) -> None:
        self.filepath = Path(filepath)
        self.model = model
        self._lock = threading.Lock()
        self.backup_enabled = backup_enabled
        self.backup_keep = max(0, int(backup_keep))

        self.filepath.parent.mkdir(parents=True, exist_ok=True)

    # ---------------- I/O bas niveau ---------------- #

    def _read_raw(self) -> List[Dict[str, Any]]:
        try:
            with self.filepath.open("r", encoding="utf-8") as f:
                data = json.load(f)
            return data if isinstance(data, list) else []
        except FileNotFoundError:
            return []
        except json.JSONDecodeError:
            logger.warning("Cache corrompu: %s (sauvegardé en .corrupt.json)", self.filepath)
            try:
                shutil.copy2(self.filepath, self.filepath.with_suffix(".corrupt.json"))
            except OSError as e:
                logger.warning("Copie du cache corrompu impossible: %s", e)
            return []

    def _rotate_backups(self) -> None:
        if not self.backup_enabled or self.backup_keep <= 0:
            return
        pattern = str(self.filepath.with_suffix(".*.bak.json"))
        files = sorted(glob.glob(pattern))
        # garde les plus récents
        for old in files[: max(0, len(files) - self.backup_keep)]:
            Path(old).unlink(missing_ok=True)

    def _write_raw(self, data: Iterable[Mapping[str, Any]]) -> bool:
        with self._lock:
            new_dump = json.dumps(list(data), ensure_ascii=False, indent=2, default=_json_default)

            # si contenu identique → ne rien faire
            if self.filepath.exists() and self.filepath.read_text(encoding="utf-8") == new_dump:
                return False

            if self.backup_enabled and self.filepath.exists():
                ts = datetime.now().strftime("%Y%m%d-%H%M%S-%f")
                shutil.copy2(self.filepath, self.filepath.with_suffix(f".{ts}.bak.json"))
                self._rotate_backups()

            self.filepath.write_text(new_dump, encoding="utf-8")
            return True

    # ---------------- Helpers ---------------- #

    @staticmethod
    def _to_dict(item: Union[BaseModel, Mapping[str, Any]]) -> Dict[str, Any]:
        if isinstance(item, BaseModel):
            return item.model_dump(mode="json", by_alias=True)
        return dict(item)

    # ---------------- API ---------------- #

    def exists(self) -> bool:
        return self.filepath.exists()

    def load(self) -> List[M]:
        """Réhydrate la collection ; les entrées invalides sont ignorées pour ne pas casser l'UI."""
        out: List[M] = []
        for d in self._read_raw():
            try:
                out.append(self.model.model_validate(d))
            except ValidationError:
                logger.warning("Entrée ignorée dans %s: %r", self.filepath.name, d.get("id") if isinstance(d, dict) else d)
                continue
        return out

    def save(self, items: Iterable[Union[M, Mapping[str, Any]]]) -> bool:
        """Retourne True si le fichier a été réécrit."""
        return self._write_raw(self._to_dict(it) for it in items if it is not None)

    def backups(self) -> List[Path]:
        return [Path(p) for p in sorted(glob.glob(str(self.filepath.with_suffix(".*.bak.json"))))]
