"""Parser independent view of top-level C declarations.

A front end (see :class:`gen_mkl_rs.c_parser.CParser`) lowers whatever AST it
produces into these values; the extractor only ever looks at them. A
declaration is a list of declaration specifiers followed by
init-declarators. Declarators nest by type construction, outermost first,
with the declared identifier at the bottom: ``double *x`` is a pointer
around ``x``, ``double a[]`` an array around ``a`` and a function returning
a pointer is a function around a pointer around the name.

``void *mkl_malloc(size_t alloc_size, int alignment)`` reads as::

    Declaration(
        specifiers=(DeclSpecifier(TYPE, "void"),),
        init_declarators=(InitDeclarator(
            FunctionDeclarator(
                PointerDeclarator(IdentDeclarator("mkl_malloc")),
                params=(
                    ParamDecl((DeclSpecifier(TYPE, "size_t"),), IdentDeclarator("alloc_size")),
                    ParamDecl((DeclSpecifier(TYPE, "int"),), IdentDeclarator("alignment")),
                ),
            ),
        ),),
    )
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterable, Protocol, Union


class SpecifierKind(Enum):
    STORAGE = auto()
    QUALIFIER = auto()
    TYPE = auto()
    FUNCTION = auto()
    ALIGNMENT = auto()
    ATTRIBUTE = auto()


@dataclass(frozen=True)
class DeclSpecifier:
    kind: SpecifierKind
    spelling: str


@dataclass(frozen=True)
class IdentDeclarator:
    # None for abstract declarators
    name: str | None


@dataclass(frozen=True)
class PointerDeclarator:
    inner: "Declarator | None"
    qualifiers: tuple[str, ...] = ()


@dataclass(frozen=True)
class ArrayDeclarator:
    inner: "Declarator | None"
    size: str | None = None


@dataclass(frozen=True)
class FunctionDeclarator:
    inner: "Declarator | None"
    params: tuple["ParamDecl", ...] = ()
    variadic: bool = False


Declarator = Union[IdentDeclarator, PointerDeclarator, ArrayDeclarator, FunctionDeclarator]


@dataclass(frozen=True)
class ParamDecl:
    specifiers: tuple[DeclSpecifier, ...]
    declarator: Declarator | None = None


@dataclass(frozen=True)
class InitDeclarator:
    declarator: Declarator
    has_initializer: bool = False


@dataclass(frozen=True)
class Declaration:
    specifiers: tuple[DeclSpecifier, ...]
    init_declarators: tuple[InitDeclarator, ...] = ()
    location: str = field(default="", compare=False)


class DeclarationSource(Protocol):
    """Anything that can enumerate the top-level declarations of a header."""

    @property
    def diagnostics(self) -> list[str]: ...

    def declarations(self) -> Iterable[Declaration]: ...


@dataclass
class StaticDeclarationSource:
    """A DeclarationSource over an already built list of declarations."""

    items: list[Declaration]
    diagnostics: list[str] = field(default_factory=list)

    def declarations(self) -> Iterable[Declaration]:
        return iter(self.items)


def qualifiers(*names: str) -> tuple[DeclSpecifier, ...]:
    return tuple(DeclSpecifier(SpecifierKind.QUALIFIER, name) for name in names)


def type_specifier(spelling: str) -> DeclSpecifier:
    return DeclSpecifier(SpecifierKind.TYPE, spelling)
