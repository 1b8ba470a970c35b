"""prng_precompile.version — package version string.

`__version__` is resolved once at import, first match wins:
  1) PRNG_PRECOMPILE_VERSION (exact value, for builds that stamp a version)
  2) metadata of the installed `prng-precompile` distribution
  3) BASE_VERSION, for a plain source checkout
"""

from __future__ import annotations

import os
from importlib import metadata

# Bump on protocol-affecting changes (seed derivation, layouts, gas schedule).
BASE_VERSION = "0.1.0"

DIST_NAME = "prng-precompile"


def resolve_version() -> str:
    override = (os.getenv("PRNG_PRECOMPILE_VERSION") or "").strip()
    if override:
        return override
    try:
        return metadata.version(DIST_NAME)
    except metadata.PackageNotFoundError:
        return BASE_VERSION


__version__ = resolve_version()

__all__ = ["__version__", "BASE_VERSION", "resolve_version"]
