from typing import Iterable

from gen_mkl_rs import logging as gen_logging
from gen_mkl_rs.pattern_registry import PatternRegistry

from .declarations import (ArrayDeclarator, Declaration, DeclarationSource,
                           Declarator, DeclSpecifier, FunctionDeclarator,
                           IdentDeclarator, ParamDecl, PointerDeclarator,
                           SpecifierKind)
from .function_info import FunctionInfo, ParamInfo

logger = gen_logging.get_logger(__name__)

POINTER_MARKER = "*"
ARRAY_MARKER = "[]"

_SPELLED_KINDS = (SpecifierKind.QUALIFIER, SpecifierKind.TYPE)


class UnsupportedDeclarator(Exception):
    """A declarator shape this tool does not translate."""


def type_spelling(specifiers: Iterable[DeclSpecifier]) -> str:
    """Join qualifiers and type specifiers in source order.

    Storage class, function, alignment and attribute specifiers do not
    contribute to the spelling.
    """
    return " ".join(s.spelling for s in specifiers if s.kind in _SPELLED_KINDS)


def _with_pointers(c_type: str, levels: int) -> str:
    if levels == 0:
        return c_type
    return f"{c_type} {POINTER_MARKER * levels}"


def _unwrap_pointers(declarator: Declarator | None) -> tuple[int, Declarator | None]:
    levels = 0
    while isinstance(declarator, PointerDeclarator):
        levels += 1
        declarator = declarator.inner
    return levels, declarator


def _ident_name(declarator: Declarator | None) -> str | None:
    if declarator is None:
        return None
    if isinstance(declarator, IdentDeclarator):
        return declarator.name
    raise UnsupportedDeclarator(type(declarator).__name__)


def function_declarator(decl: Declaration) -> FunctionDeclarator | None:
    """Return the function declarator of a plain function declaration."""
    if len(decl.init_declarators) != 1:
        return None
    init = decl.init_declarators[0]
    if init.has_initializer:
        return None
    # a pointer here would make this a function pointer variable
    if not isinstance(init.declarator, FunctionDeclarator):
        return None
    return init.declarator


def function_name(decl: Declaration) -> str | None:
    func = function_declarator(decl)
    if func is None:
        return None
    _, inner = _unwrap_pointers(func.inner)
    if not isinstance(inner, IdentDeclarator):
        # functions returning function pointers or arrays
        return None
    return inner.name or None


def return_type_spelling(decl: Declaration) -> str | None:
    func = function_declarator(decl)
    if func is None:
        return None
    levels, _ = _unwrap_pointers(func.inner)
    return _with_pointers(type_spelling(decl.specifiers), levels)


def _is_void_list(params: tuple[ParamDecl, ...]) -> bool:
    if len(params) != 1:
        return False
    only = params[0]
    return only.declarator is None and type_spelling(only.specifiers) == "void"


def parameters(func: FunctionDeclarator) -> list[ParamInfo]:
    """Rebuild the ordered parameter list of ``func``.

    Raises UnsupportedDeclarator for shapes that cannot be expressed
    as a single pointer or array level around a name.
    """
    if func.variadic:
        raise UnsupportedDeclarator("variadic function")
    if _is_void_list(func.params):
        return []

    params: list[ParamInfo] = []
    index = 0
    while index < len(func.params):
        param = func.params[index]
        c_type = type_spelling(param.specifiers)
        if not c_type:
            raise UnsupportedDeclarator(f"parameter {index} has no type")

        levels, inner = _unwrap_pointers(param.declarator)
        if isinstance(inner, ArrayDeclarator):
            if levels:
                raise UnsupportedDeclarator(f"parameter {index} mixes pointer and array")
            # arrays carry the name one level down
            name = _ident_name(inner.inner)
            c_type = c_type + ARRAY_MARKER
        else:
            name = _ident_name(inner)
            c_type = _with_pointers(c_type, levels)

        if not name:
            name = f"p{index}"
        params.append(ParamInfo.from_c(name, c_type))
        index += 1

    return params


def extract_function(decl: Declaration, registry: PatternRegistry) -> FunctionInfo | None:
    """Build the FunctionInfo of ``decl`` if it declares a wanted function."""
    name = function_name(decl)
    if name is None:
        return None

    match = registry.find_func(name)
    if not match.is32 and not match.is64:
        return None

    try:
        params = parameters(function_declarator(decl))
    except UnsupportedDeclarator as exc:
        logger.debug("Skipping %s at %s: unsupported declarator (%s)", name, decl.location, exc)
        return None

    return FunctionInfo(
        raw_name=name,
        is32=match.is32,
        canonical_name=match.canonical_name,
        return_type=return_type_spelling(decl),
        params=tuple(params),
        location=decl.location,
    )


def extract_functions(source: DeclarationSource, registry: PatternRegistry) -> list[FunctionInfo]:
    """Extract every wanted function of ``source`` in declaration order.

    A function declared more than once keeps its first declaration.
    """
    functions: list[FunctionInfo] = []
    seen: set[str] = set()
    for decl in source.declarations():
        function = extract_function(decl, registry)
        if function is None:
            continue
        if function.raw_name in seen:
            logger.debug("Ignoring redeclaration of %s at %s", function.raw_name, decl.location)
            continue
        seen.add(function.raw_name)
        functions.append(function)

    logger.info("Extracted %d functions (%d single, %d double precision)",
                len(functions),
                sum(1 for f in functions if f.is32),
                sum(1 for f in functions if f.is64))
    return functions
