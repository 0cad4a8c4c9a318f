"""Exception hierarchy for code-stats-ls."""
from __future__ import annotations


class CodeStatsError(Exception):
    """Base class for all code-stats-ls errors."""


class ConfigError(CodeStatsError):
    """Credentials or endpoint could not be resolved at startup."""


class CacheError(CodeStatsError):
    """The pulse cache could not be opened, read or written."""
