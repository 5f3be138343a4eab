from dataclasses import dataclass
from typing import Iterable

from gen_mkl_rs import logging as gen_logging
from gen_mkl_rs.c_parser import FunctionInfo
from gen_mkl_rs.pattern_registry import split_pattern

logger = gen_logging.get_logger(__name__)

USE_SEPARATOR = ", "


def collect_use_items(functions: Iterable[FunctionInfo]) -> tuple[str, ...]:
    """Raw function names plus every mapped type that must be imported.

    Sorted by code point and free of duplicates, so regenerating from the
    same header gives byte-identical output regardless of input order.
    """
    uses: set[str] = set()
    for f in functions:
        uses.add(f.raw_name)
        for param in f.params:
            if not param.exclude_from_imports:
                uses.add(param.rust_type)
    return tuple(sorted(uses))


@dataclass(frozen=True)
class BindingModel:
    """Everything the templates need to render a binding module."""

    functions: tuple[FunctionInfo, ...]
    desired_func_list: tuple[str, ...]
    provider_crate: str = "crate"
    trait_name: str = "MKLRoutines"

    def _filter(self, is32: bool) -> list[FunctionInfo]:
        return [f for f in self.functions if f.is32 == is32]

    @property
    def f32_funcs(self) -> list[FunctionInfo]:
        return self._filter(True)

    @property
    def f64_funcs(self) -> list[FunctionInfo]:
        return self._filter(False)

    @property
    def trait_funcs(self) -> list[FunctionInfo]:
        # the trait is declared from the single precision signatures
        return self.f32_funcs

    @property
    def use_items(self) -> tuple[str, ...]:
        return collect_use_items(self.functions)

    @property
    def use_line(self) -> str:
        return f"{self.provider_crate}::{{{USE_SEPARATOR.join(self.use_items)}}}"

    def unmatched_patterns(self) -> list[str]:
        """Patterns with a precision separator that matched no declaration."""
        found = {f.raw_name for f in self.functions}
        unmatched = []
        for pattern in self.desired_func_list:
            expanded = split_pattern(pattern)
            if expanded is None:
                continue
            if expanded.name32 not in found and expanded.name64 not in found:
                unmatched.append(pattern)
        return unmatched

    def missing_variants(self) -> list[str]:
        """Canonical names present in only one precision."""
        names32 = {f.canonical_name for f in self.f32_funcs}
        names64 = {f.canonical_name for f in self.f64_funcs}
        return sorted(names32 ^ names64)


def aggregate(
    functions: Iterable[FunctionInfo],
    desired_func_list: Iterable[str] = (),
    provider_crate: str = "crate",
    trait_name: str = "MKLRoutines",
) -> BindingModel:
    model = BindingModel(
        functions=tuple(functions),
        desired_func_list=tuple(desired_func_list),
        provider_crate=provider_crate,
        trait_name=trait_name,
    )
    for pattern in model.unmatched_patterns():
        logger.warning("Pattern '%s' matched no declaration in the header", pattern)
    for name in model.missing_variants():
        logger.warning("%s is only available in one precision; the trait and impls will disagree", name)
    return model
