from .validation import (
    canonical_dumps,
    canonicalize,
    from_compat,
    obj_canonicalized_hash,
    to_compat,
    unique_iter,
)

__all__ = [
    "canonical_dumps",
    "canonicalize",
    "from_compat",
    "obj_canonicalized_hash",
    "to_compat",
    "unique_iter",
]
