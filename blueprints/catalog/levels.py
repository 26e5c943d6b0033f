# blueprints/catalog/levels.py
from __future__ import annotations
import re
from typing import Dict, Mapping, Optional

# code -> (отображаемое имя, тип школы)
DEFAULT_CLASS_LEVELS: Dict[str, Dict[str, str]] = {
    # Primary (1-6)
    "PRIMARY_1": {"name": "Primary 1", "school_type": "PRIMARY"},
    "PRIMARY_2": {"name": "Primary 2", "school_type": "PRIMARY"},
    "PRIMARY_3": {"name": "Primary 3", "school_type": "PRIMARY"},
    "PRIMARY_4": {"name": "Primary 4", "school_type": "PRIMARY"},
    "PRIMARY_5": {"name": "Primary 5", "school_type": "PRIMARY"},
    "PRIMARY_6": {"name": "Primary 6", "school_type": "PRIMARY"},
    # Junior Secondary
    "JSS_1": {"name": "JSS 1", "school_type": "SECONDARY"},
    "JSS_2": {"name": "JSS 2", "school_type": "SECONDARY"},
    "JSS_3": {"name": "JSS 3", "school_type": "SECONDARY"},
    # Senior Secondary
    "SS_1": {"name": "SS 1", "school_type": "SECONDARY"},
    "SS_2": {"name": "SS 2", "school_type": "SECONDARY"},
    "SS_3": {"name": "SS 3", "school_type": "SECONDARY"},
}

_WS = re.compile(r"\s+")


def _squash(s: str) -> str:
    return _WS.sub("", s or "").lower()


class ClassLevelCodes:
    """Таблица «имя уровня + тип школы -> канонический код».

    Передаётся в движок явно, чтобы её можно было расширить из конфига
    (``CLASS_LEVEL_CODES``) без правки алгоритма сопоставления.
    """

    def __init__(self, extra: Optional[Mapping[str, Mapping[str, str]]] = None):
        self._table: Dict[str, Dict[str, str]] = {k: dict(v) for k, v in DEFAULT_CLASS_LEVELS.items()}
        for code, entry in (extra or {}).items():
            self._table[code] = {"name": entry["name"], "school_type": entry["school_type"]}

    @classmethod
    def from_config(cls, config: Mapping) -> "ClassLevelCodes":
        return cls(config.get("CLASS_LEVEL_CODES") or {})

    def code_for(self, name: str | None, school_type: str | None) -> Optional[str]:
        if not name or not school_type:
            return None
        stype = str(getattr(school_type, "value", school_type))
        lowered = name.strip().lower()
        for code, m in self._table.items():
            if m["school_type"] == stype and m["name"].lower() == lowered:
                return code
        # второй проход: "Primary1", "JSS  1", "jss1"
        squashed = _squash(name)
        for code, m in self._table.items():
            if m["school_type"] == stype and _squash(m["name"]) == squashed:
                return code
        return None

    def name_for(self, code: str) -> Optional[str]:
        entry = self._table.get(code)
        return entry["name"] if entry else None

    def codes(self) -> list[str]:
        return list(self._table)
