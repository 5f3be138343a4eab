from .aggregator import BindingModel, aggregate
from .generator import GenerateConfig, build_config, generate
from .pattern_registry import MalformedPatternError, PatternRegistry
from .renderer import OutputMode, render
from .type_mapping import map_type

__all__ = [
    'BindingModel',
    'GenerateConfig',
    'MalformedPatternError',
    'OutputMode',
    'PatternRegistry',
    'aggregate',
    'build_config',
    'generate',
    'map_type',
    'render',
]
