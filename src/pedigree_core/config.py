"""Environment-driven defaults for pedigree processing.

Environment Variables:
    PEDIGREE_LENIENT_FAMILIES: Accept families whose parent sex is unknown (default false)
    PEDIGREE_SKIP_INVALID_FAMILIES: Skip families failing validation instead of raising (default false)
    PEDIGREE_LOG_LEVEL: Log level used by the CLI (default INFO)
    PEDIGREE_DEFAULT_PLOIDY: Fallback ploidy handed to reference ploidy resolution (default unset)

Example:
    >>> from pedigree_core.config import CONFIG
    >>> CONFIG.lenient_families
    False
"""
from __future__ import annotations

import os
from dataclasses import dataclass

_TRUE = {"1", "true", "yes", "on"}
_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _b(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE


def _level(name: str, default: str) -> str:
    raw = (os.getenv(name) or default).strip().upper()
    return raw if raw in _LEVELS else default


def _opt(name: str) -> str | None:
    raw = os.getenv(name)
    return raw.strip() if raw and raw.strip() else None


@dataclass(frozen=True)
class PedigreeConfig:
    lenient_families: bool = _b("PEDIGREE_LENIENT_FAMILIES", False)
    skip_invalid_families: bool = _b("PEDIGREE_SKIP_INVALID_FAMILIES", False)
    log_level: str = _level("PEDIGREE_LOG_LEVEL", "INFO")

    # Opaque to this package, only passed through to ploidy resolution
    default_ploidy: str | None = _opt("PEDIGREE_DEFAULT_PLOIDY")

    @classmethod
    def from_env(cls) -> PedigreeConfig:
        """Re-read the environment (defaults above are bound at import)."""
        return cls(
            lenient_families=_b("PEDIGREE_LENIENT_FAMILIES", False),
            skip_invalid_families=_b("PEDIGREE_SKIP_INVALID_FAMILIES", False),
            log_level=_level("PEDIGREE_LOG_LEVEL", "INFO"),
            default_ploidy=_opt("PEDIGREE_DEFAULT_PLOIDY"),
        )


CONFIG = PedigreeConfig()
