from enum import Enum
from functools import lru_cache
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from gen_mkl_rs.aggregator import BindingModel

_TEMPLATE_DIR = Path(__file__).with_name("templates")


class OutputMode(Enum):
    RUST = "bindings.rs.j2"
    HEADER = "bindings.h.j2"

    @property
    def template_name(self) -> str:
        return self.value


@lru_cache(maxsize=None)
def _get_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(_TEMPLATE_DIR),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )


def _include_guard(name: str) -> str:
    return "".join(ch if ch.isalnum() else "_" for ch in name).upper() + "_H"


def render(model: BindingModel, mode: OutputMode = OutputMode.RUST, header_name: str = "mkl.h") -> str:
    """Render ``model`` with the template of ``mode``.

    ``header_name`` is the header the C output includes.

    jinja2.TemplateError propagates to the caller.
    """
    template = _get_env().get_template(mode.template_name)
    return template.render(
        model=model,
        include_guard=_include_guard(model.trait_name),
        header_name=header_name,
    )
