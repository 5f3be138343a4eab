from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, NamedTuple

from gen_mkl_rs import logging as gen_logging
from gen_mkl_rs.utils import read_input

logger = gen_logging.get_logger(__name__)

COMMENT_PREFIX = "//"

# separator -> (64-bit infix, 32-bit infix)
_SEPARATORS = {
    "*": ("d", "s"),
    "#": ("D", "S"),
}


class MalformedPatternError(ValueError):
    def __init__(self, line_number: int, pattern: str, reason: str):
        super().__init__(f"line {line_number}: '{pattern}' is not a valid pattern: {reason}")
        self.line_number = line_number
        self.pattern = pattern
        self.reason = reason


class FuncMatch(NamedTuple):
    is32: bool
    is64: bool
    canonical_name: str


_NO_MATCH = FuncMatch(False, False, "")


@dataclass(frozen=True)
class ExpandedPattern:
    canonical_name: str
    name64: str
    name32: str


def split_pattern(pattern: str, line_number: int = 0) -> ExpandedPattern | None:
    """Expand ``pattern`` into its double and single precision names.

    Returns None for a literal name (no separator).
    """
    present = [sep for sep in _SEPARATORS if sep in pattern]
    if not present:
        return None
    if len(present) > 1:
        raise MalformedPatternError(line_number, pattern, "mixes '*' and '#'")

    sep = present[0]
    fixes = pattern.split(sep)
    if len(fixes) != 2:
        raise MalformedPatternError(line_number, pattern, f"contains more than one '{sep}'")
    prefix, suffix = fixes
    if not prefix or not suffix:
        raise MalformedPatternError(line_number, pattern, f"needs text on both sides of '{sep}'")

    infix64, infix32 = _SEPARATORS[sep]
    return ExpandedPattern(
        canonical_name=prefix + suffix,
        name64=f"{prefix}{infix64}{suffix}",
        name32=f"{prefix}{infix32}{suffix}",
    )


class PatternRegistry:
    """The desired function list and its precision lookup tables.

    Built once by :meth:`load`; read-only afterwards.
    """

    def __init__(
        self,
        desired_func_list: Iterable[str],
        for_float64: Mapping[str, str],
        for_float32: Mapping[str, str],
    ):
        self._desired_func_list = tuple(desired_func_list)
        self._for_float64 = MappingProxyType(dict(for_float64))
        self._for_float32 = MappingProxyType(dict(for_float32))

    @classmethod
    def load(cls, source: str | Iterable[str]) -> "PatternRegistry":
        """Parse a pattern list.

        ``source`` is either the whole text or an iterable of lines.
        Raises MalformedPatternError on the first invalid line.
        """
        lines = source.split("\n") if isinstance(source, str) else source

        desired_func_list: list[str] = []
        for_float64: dict[str, str] = {}
        for_float32: dict[str, str] = {}

        for line_number, input_line in enumerate(lines, start=1):
            pattern = input_line.strip(" \r\n")
            if not pattern or pattern.startswith(COMMENT_PREFIX):
                continue

            expanded = split_pattern(pattern, line_number)
            desired_func_list.append(pattern)
            if expanded is None:
                logger.debug("Pattern '%s' has no precision separator, it only appears in the header comment", pattern)
                continue

            for_float64[expanded.name64] = expanded.canonical_name
            for_float32[expanded.name32] = expanded.canonical_name

        logger.debug("Loaded %d patterns", len(desired_func_list))
        return cls(desired_func_list, for_float64, for_float32)

    @property
    def desired_func_list(self) -> tuple[str, ...]:
        return self._desired_func_list

    @property
    def for_float64(self) -> Mapping[str, str]:
        return self._for_float64

    @property
    def for_float32(self) -> Mapping[str, str]:
        return self._for_float32

    def find_func(self, raw_name: str) -> FuncMatch:
        # single precision is checked first and wins on collisions
        canonical_name = self._for_float32.get(raw_name)
        if canonical_name is not None:
            return FuncMatch(True, False, canonical_name)
        canonical_name = self._for_float64.get(raw_name)
        if canonical_name is not None:
            return FuncMatch(False, True, canonical_name)
        return _NO_MATCH

    def __len__(self):
        return len(self._desired_func_list)

    def __repr__(self):
        return f"PatternRegistry({len(self._desired_func_list)} patterns)"


def load_pattern_file(path: str) -> PatternRegistry:
    """Load the pattern list from ``path``; ``-`` reads standard input."""
    return PatternRegistry.load(read_input(path))
