"""
prng_precompile.abi
===================

Wire formats of the random precompile.

This package provides:
  • ABI descriptors and selectors for the typed calling convention.
  • Fixed-width encoders/decoders for words, arrays and the raw layout.
  • The two interchangeable `Codec` strategies selected by configuration.
"""

from __future__ import annotations

from .codec import *  # noqa: F401,F403
from .decoding import *  # noqa: F401,F403
from .encoding import *  # noqa: F401,F403
from .types import *  # noqa: F401,F403
from .codec import __all__ as _all_codec
from .decoding import __all__ as _all_decoding
from .encoding import __all__ as _all_encoding
from .types import __all__ as _all_types

__all__ = tuple(
    dict.fromkeys(  # preserve order, dedupe
        (*_all_types, *_all_encoding, *_all_decoding, *_all_codec)
    )
)
