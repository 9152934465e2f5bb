"""Environment template expansion for storage destination properties."""

from __future__ import annotations

import logging
from string import Template
from typing import Dict, Mapping, Optional

_LOGGER = logging.getLogger(__name__)


class _EnvironmentLookup(dict):
    """Template mapping that expands unknown variables to an empty string."""

    def __init__(self, environ: Mapping[str, str]) -> None:
        super().__init__()
        self._environ = environ

    def __getitem__(self, key: str) -> str:
        if key in self._environ:
            return self._environ[key]
        _LOGGER.warning("Environment variable %s is not set; substituting an empty value.", key)
        return ""


def resolve_template(value: object, environ: Mapping[str, str]) -> str:
    """Expand ``$VAR`` and ``${VAR}`` references in ``value``.

    A lone ``$`` that does not start a placeholder is kept verbatim.
    """
    return Template(str(value)).safe_substitute(_EnvironmentLookup(environ))


def resolve_templates(
    properties: Optional[Mapping[str, object]],
    environ: Mapping[str, str],
) -> Optional[Dict[str, str]]:
    """Return ``properties`` with every value expanded, or ``None`` when absent."""
    if properties is None:
        return None
    return {key: resolve_template(value, environ) for key, value in properties.items()}
