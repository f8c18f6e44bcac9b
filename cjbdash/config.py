"""
Dashboard configuration
=======================

Defaults can be overridden with CJB_* environment variables, e.g.

    CJB_REMOTE_URL=https://example.org/data.json
    CJB_FETCH_TIMEOUT=3
    CJB_AUTO_LOAD=false
"""

from __future__ import annotations
from dataclasses import dataclass, fields
from typing import Any, Dict, List, Mapping, Optional
import logging
import os

logger = logging.getLogger(__name__)

ENV_PREFIX = "CJB_"

_TRUE = ("1", "true", "yes", "on", "si", "sí")
_FALSE = ("0", "false", "no", "off")


@dataclass(frozen=True)
class DashboardConfig:
    # JSON snapshot published by the exporter ({lastUpdate, count, data})
    remote_url: str = ""
    # local Excel->JSON service
    local_url: str = "http://localhost:3001/api/incidentes"
    auto_load: bool = True
    # 0 = no periodic refresh
    refresh_minutes: float = 0.0
    fetch_timeout: float = 5.0
    show_manual_upload: bool = True
    page_size: int = 25

    def sources(self) -> List[str]:
        """Feed URLs in fallback order (empty entries skipped)."""
        return [u for u in (self.remote_url, self.local_url) if u]


def _cast(raw: str, default: Any) -> Any:
    if isinstance(default, bool):
        v = raw.strip().lower()
        if v in _TRUE:
            return True
        if v in _FALSE:
            return False
        raise ValueError(f"not a boolean: {raw!r}")
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    return raw.strip()


def load_config(environ: Optional[Mapping[str, str]] = None, **overrides: Any) -> DashboardConfig:
    """Build the config from defaults, then CJB_* variables, then keyword overrides.

    Variables that cannot be converted are logged and ignored.
    """
    env = os.environ if environ is None else environ
    defaults = DashboardConfig()
    values: Dict[str, Any] = {}
    for f in fields(DashboardConfig):
        name = ENV_PREFIX + f.name.upper()
        if name not in env:
            continue
        try:
            values[f.name] = _cast(env[name], getattr(defaults, f.name))
        except ValueError:
            logger.warning("Ignoring invalid %s=%r", name, env[name])
    values.update({k: v for k, v in overrides.items() if v is not None})
    return DashboardConfig(**values)
