"""
Corbeille générique (clients, produits, documents).

Toutes les fonctions prennent une collection et renvoient une NOUVELLE liste :
l'appelant remplace sa référence, la collection d'entrée n'est jamais modifiée.
Un identifiant introuvable n'est pas une erreur : on renvoie une copie inchangée.
En cas d'identifiants dupliqués, seule la première occurrence est concernée.

Les entités peuvent être des modèles pydantic ou des dicts (cache brut).
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Iterable, List, Mapping, Optional, TypeVar, Union

from pydantic import BaseModel

from core.models.common import utcnow

T = TypeVar("T", bound=Union[BaseModel, Mapping[str, Any]])

TOMBSTONE = "deleted_at"
KEY = "id"


# ---------- Accès champ (modèle ou dict) ---------- #

def _get(entity: Any, name: str) -> Any:
    if isinstance(entity, Mapping):
        return entity.get(name)
    return getattr(entity, name, None)


def _with(entity: T, name: str, value: Any) -> T:
    if isinstance(entity, BaseModel):
        return entity.model_copy(update={name: value})
    return {**entity, name: value}  # type: ignore[return-value]


def is_trashed(entity: Any) -> bool:
    return _get(entity, TOMBSTONE) is not None


def _first_index(entities: List[T], obj_id: Any) -> int:
    for i, e in enumerate(entities):
        if e is not None and _get(e, KEY) == obj_id:
            return i
    return -1


# ---------- Vues ---------- #

def list_active(entities: Optional[Iterable[Optional[T]]]) -> List[T]:
    # collections partiellement chargées : on ignore les trous
    return [e for e in (entities or []) if e is not None and not is_trashed(e)]


def list_trashed(
    entities: Optional[Iterable[Optional[T]]],
    predicate: Optional[Callable[[T], bool]] = None,
) -> List[T]:
    out: List[T] = []
    for e in entities or []:
        if e is None or not is_trashed(e):
            continue
        if predicate is not None and not predicate(e):
            continue
        out.append(e)
    return out


def count_trashed(entities: Optional[Iterable[Optional[T]]]) -> int:
    return len(list_trashed(entities))


# ---------- Cycle de vie ---------- #

def soft_delete(
    entities: Optional[Iterable[Optional[T]]],
    obj_id: Any,
    *,
    now: Optional[datetime] = None,
) -> List[T]:
    out = list(entities or [])
    idx = _first_index(out, obj_id)
    if idx >= 0:
        out[idx] = _with(out[idx], TOMBSTONE, now or utcnow())
    return out


def restore(entities: Optional[Iterable[Optional[T]]], obj_id: Any) -> List[T]:
    out = list(entities or [])
    idx = _first_index(out, obj_id)
    if idx >= 0:
        out[idx] = _with(out[idx], TOMBSTONE, None)
    return out


def purge(entities: Optional[Iterable[Optional[T]]], obj_id: Any) -> List[T]:
    """Suppression définitive. La confirmation utilisateur relève de l'UI."""
    out = list(entities or [])
    idx = _first_index(out, obj_id)
    if idx >= 0:
        del out[idx]
    return out
