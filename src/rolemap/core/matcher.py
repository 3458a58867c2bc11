"""Wildcard-aware matching of role data-action patterns."""

from __future__ import annotations

import re
from functools import lru_cache


@lru_cache(maxsize=1024)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Translate a glob-style pattern (``*`` = any sequence) to an anchored regex."""
    regex = "^" + ".*".join(re.escape(part) for part in pattern.lower().split("*")) + "$"
    return re.compile(regex)


def action_matches(role_action: str, required_action: str) -> bool:
    """Check if a role's data-action pattern grants a specific data action.

    Case-insensitive. Supports the universal ``*``, path-prefix ``.../*``
    and embedded wildcards such as ``Microsoft.KeyVault/vaults/*/read``.
    """
    r = role_action.lower()
    req = required_action.lower()

    if r == "*" or r == req:
        return True
    if r.endswith("/*"):
        return req.startswith(r[:-2])
    if "*" in r:
        return bool(compile_pattern(r).match(req))
    return False
