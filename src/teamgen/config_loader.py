"""Persist and load CLI profiles: roster column mapping plus generation defaults."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional


_DEFAULT_KEYS = ("format", "balance_method", "teams_count")


@dataclass
class MappingProfile:
    roster_mapping: Dict[str, str] = field(default_factory=dict)
    format: Optional[str] = None
    balance_method: Optional[str] = None
    teams_count: Optional[int] = None

    @classmethod
    def load(cls, path: Path) -> "MappingProfile":
        data = json.loads(path.read_text(encoding="utf-8"))
        mapping = data.get("roster_mapping", {})
        if not isinstance(mapping, dict):
            raise ValueError(f"{path}: roster_mapping must be a JSON object")
        teams = data.get("teams_count")
        return cls(
            roster_mapping={str(key): str(value) for key, value in mapping.items()},
            format=data.get("format"),
            balance_method=data.get("balance_method"),
            teams_count=int(teams) if teams is not None else None,
        )

    def save(self, path: Path) -> None:
        payload: Dict[str, object] = {"roster_mapping": self.roster_mapping}
        for key in _DEFAULT_KEYS:
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
