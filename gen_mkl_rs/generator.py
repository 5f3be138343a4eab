import os
from dataclasses import dataclass
from typing import Any, Mapping

from gen_mkl_rs import logging as gen_logging, utils
from gen_mkl_rs.aggregator import BindingModel, aggregate
from gen_mkl_rs.c_parser import CParser, DeclarationSource, extract_functions
from gen_mkl_rs.pattern_registry import load_pattern_file
from gen_mkl_rs.renderer import OutputMode, render

logger = gen_logging.get_logger(__name__)

MKLROOT_ENV_VAR = "MKLROOT"
DEFAULT_MKL_ROOT = "/opt/intel/oneapi/mkl/latest"
DEFAULT_PROVIDER_CRATE = "crate"
DEFAULT_TRAIT_NAME = "MKLRoutines"


@dataclass(frozen=True)
class GenerateConfig:
    header_path: str
    funcs_path: str
    output_path: str
    provider_crate: str = DEFAULT_PROVIDER_CRATE
    trait_name: str = DEFAULT_TRAIT_NAME
    output_mode: OutputMode = OutputMode.RUST
    clang_args: tuple[str, ...] = ()
    compiler_include_paths: bool = True

    def __post_init__(self):
        if not self.funcs_path:
            raise ValueError("A function list is required (use '-' for stdin)")
        if not self.output_path:
            raise ValueError("An output path is required")
        if not self.provider_crate:
            raise ValueError("provider_crate must not be empty")
        if not self.trait_name.isidentifier():
            raise ValueError(f"trait_name '{self.trait_name}' is not a valid identifier")


def resolve_header_path(explicit: str | None, env: Mapping[str, str] | None = None,
                        fallback_root: str = DEFAULT_MKL_ROOT) -> str:
    """Pick the header to parse.

    An explicit path wins, then ``$MKLROOT/include/mkl.h``, then the
    fallback root.
    """
    if explicit:
        return explicit
    if env is None:
        env = os.environ
    mkl_root = env.get(MKLROOT_ENV_VAR) or fallback_root
    return os.path.join(mkl_root, "include", "mkl.h")


def build_config(
    config: Mapping[str, Any],
    *,
    funcs_path: str,
    output_path: str,
    header_path: str | None = None,
    provider_crate: str | None = None,
    trait_name: str | None = None,
    header_output: bool = False,
    clang_args: list[str] | None = None,
    env: Mapping[str, str] | None = None,
) -> GenerateConfig:
    """Combine command line values with the ``[generator]`` config table."""
    generator_cfg = config.get("generator", {}) if config else {}

    cfg_clang_args = generator_cfg.get("clang_args", [])
    if not isinstance(cfg_clang_args, list):
        raise ValueError("generator.clang_args must be a list of strings")

    return GenerateConfig(
        header_path=resolve_header_path(
            header_path, env, generator_cfg.get("mkl_root_fallback", DEFAULT_MKL_ROOT)),
        funcs_path=funcs_path,
        output_path=output_path,
        provider_crate=provider_crate or generator_cfg.get("provider_crate", DEFAULT_PROVIDER_CRATE),
        trait_name=trait_name or generator_cfg.get("trait_name", DEFAULT_TRAIT_NAME),
        output_mode=OutputMode.HEADER if header_output else OutputMode.RUST,
        clang_args=tuple(cfg_clang_args) + tuple(clang_args or ()),
        compiler_include_paths=bool(generator_cfg.get("compiler_include_paths", True)),
    )


def build_model(config: GenerateConfig, source: DeclarationSource | None = None) -> BindingModel:
    # patterns are validated before the (slow) header parse
    registry = load_pattern_file(config.funcs_path)
    logger.info("Loaded %d patterns from %s", len(registry), config.funcs_path)

    if source is None:
        source = CParser(
            config.header_path,
            extra_args=list(config.clang_args),
            use_compiler_include_paths=config.compiler_include_paths,
        )

    functions = extract_functions(source, registry)
    return aggregate(
        functions,
        registry.desired_func_list,
        provider_crate=config.provider_crate,
        trait_name=config.trait_name,
    )


def generate(config: GenerateConfig, source: DeclarationSource | None = None) -> str:
    """Run the whole pipeline and write the output file once at the end."""
    model = build_model(config, source)
    output = render(model, config.output_mode, header_name=os.path.basename(config.header_path))
    utils.write_file_atomic(config.output_path, output)
    logger.info("Wrote %d functions to %s", len(model.functions), config.output_path)
    return output
