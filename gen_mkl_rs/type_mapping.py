"""Mapping of C parameter and return type spellings to Rust spellings."""

from __future__ import annotations

from functools import lru_cache
from types import MappingProxyType
from typing import Mapping, Tuple

from gen_mkl_rs.utils import read_resource_text


_RESOURCE_NAME = "c_type_map.txt"

_CONST_PREFIX = "const "

_RETURN_CLAUSES = {
    "void": "",
    "int32_t": "-> i32",
    "int": "-> i32",
    "float": "-> Self",
    "double": "-> Self",
    "size_t": "-> usize",
}


@lru_cache(maxsize=1)
def _load_c_type_pairs() -> Tuple[Tuple[str, str], ...]:
    text = read_resource_text(_RESOURCE_NAME)
    pairs: list[Tuple[str, str]] = []

    for idx, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            raise ValueError(
                f"Invalid entry in {_RESOURCE_NAME} on line {idx}: '{raw_line}'"
            )
        lhs, rhs = line.split("=", 1)
        lhs = lhs.strip()
        rhs = rhs.strip()
        if not lhs or not rhs:
            raise ValueError(
                f"Invalid entry in {_RESOURCE_NAME} on line {idx}: '{raw_line}'"
            )
        pairs.append((lhs, rhs))

    return tuple(pairs)


def get_c_type_pairs() -> Tuple[Tuple[str, str], ...]:
    """Return the ordered (C spelling, Rust spelling) pairs of the fixed table."""

    return _load_c_type_pairs()


@lru_cache(maxsize=1)
def get_c_type_map() -> Mapping[str, str]:
    return MappingProxyType(dict(_load_c_type_pairs()))


@lru_cache(maxsize=None)
def map_type(c_type: str) -> Tuple[str, bool]:
    """Map a C type spelling to ``(rust_spelling, exclude_from_imports)``.

    Spellings found in the fixed table are primitives or pointers to
    ``Self`` and never need importing. Anything else is treated as an
    opaque type provided by the binding crate: a leading ``const`` is
    dropped and the remainder is returned verbatim for the ``use`` line.
    """

    mapped = get_c_type_map().get(c_type)
    if mapped is not None:
        return mapped, True

    if c_type.startswith(_CONST_PREFIX):
        return c_type[len(_CONST_PREFIX):], False

    return c_type, False


def map_return_type(c_type: str) -> str:
    """Return the ``-> T`` clause of a trait method, empty for ``void``."""

    clause = _RETURN_CLAUSES.get(c_type)
    if clause is not None:
        return clause
    mapped, _ = map_type(c_type)
    return f"-> {mapped}"
