import os
from typing import Iterator

from clang import cindex
from clang.cindex import Cursor, CursorKind, TypeKind

from gen_mkl_rs import logging as gen_logging, utils

from .declarations import (ArrayDeclarator, Declaration, Declarator,
                           DeclSpecifier, FunctionDeclarator, IdentDeclarator,
                           InitDeclarator, ParamDecl, PointerDeclarator,
                           SpecifierKind, qualifiers, type_specifier)

logger = gen_logging.get_logger(__name__)

_ARRAY_KINDS = (
    TypeKind.CONSTANTARRAY,
    TypeKind.INCOMPLETEARRAY,
    TypeKind.VARIABLEARRAY,
    TypeKind.DEPENDENTSIZEDARRAY,
)
_FUNCTION_KINDS = (TypeKind.FUNCTIONPROTO, TypeKind.FUNCTIONNOPROTO)
_QUALIFIER_WORDS = ("const", "volatile", "restrict", "__restrict", "__restrict__")

_STORAGE_SPELLINGS = {
    cindex.StorageClass.EXTERN: "extern",
    cindex.StorageClass.STATIC: "static",
}


def _type_qualifiers(t: cindex.Type) -> list[str]:
    names = []
    if t.is_const_qualified():
        names.append("const")
    if t.is_volatile_qualified():
        names.append("volatile")
    if t.is_restrict_qualified():
        names.append("restrict")
    return names


def _unqualified_spelling(t: cindex.Type) -> str:
    return " ".join(word for word in t.spelling.split() if word not in _QUALIFIER_WORDS)


def _base_specifiers(t: cindex.Type) -> tuple[DeclSpecifier, ...]:
    return qualifiers(*_type_qualifiers(t)) + (type_specifier(_unqualified_spelling(t)),)


def _desugar(t: cindex.Type) -> cindex.Type:
    # decayed parameter types are unexposed in some libclang releases
    if t.kind == TypeKind.UNEXPOSED:
        canonical = t.get_canonical()
        if canonical.kind == TypeKind.POINTER or canonical.kind in _ARRAY_KINDS:
            return canonical
    return t


def lower_type(t: cindex.Type, ident: Declarator | None) -> tuple[cindex.Type, Declarator | None]:
    """Split ``t`` into its base type and the declarator around ``ident``.

    The chain of pointer, array and function constructors is collected
    outermost first, then wrapped around the identifier innermost first.
    """
    chain: list[tuple[str, cindex.Type]] = []
    t = _desugar(t)
    while True:
        if t.kind == TypeKind.POINTER:
            chain.append(("pointer", t))
            t = _desugar(t.get_pointee())
        elif t.kind in _ARRAY_KINDS:
            chain.append(("array", t))
            t = _desugar(t.element_type)
        elif t.kind in _FUNCTION_KINDS:
            chain.append(("function", t))
            t = _desugar(t.get_result())
        else:
            break

    declarator = ident
    for kind, ct in reversed(chain):
        if kind == "pointer":
            declarator = PointerDeclarator(declarator, tuple(_type_qualifiers(ct)))
        elif kind == "array":
            size = str(ct.element_count) if ct.kind == TypeKind.CONSTANTARRAY else None
            declarator = ArrayDeclarator(declarator, size)
        else:
            declarator = FunctionDeclarator(
                declarator,
                tuple(_lower_abstract_param(arg) for arg in ct.argument_types()),
                ct.kind == TypeKind.FUNCTIONPROTO and ct.is_function_variadic(),
            )
    return t, declarator


def _lower_abstract_param(t: cindex.Type) -> ParamDecl:
    base, declarator = lower_type(t, None)
    return ParamDecl(_base_specifiers(base), declarator)


class CParser:
    """Parse a C header with libclang and expose its top-level declarations."""

    def __init__(self, filename, extra_args=None, use_compiler_include_paths=True):
        if not os.path.exists(filename):
            raise FileNotFoundError(f"Could not find header {filename}")
        self.filename = filename

        include_path = os.path.dirname(os.path.abspath(filename))
        args = ['-x', 'c', '-std=c99', f"-I{include_path}"] + list(extra_args or [])
        if use_compiler_include_paths:
            try:
                args.extend([f"-I{path}" for path in utils.get_compiler_include_paths()])
            except OSError as exc:
                logger.debug("No compiler include paths: %s", exc)

        index = cindex.Index.create()
        logger.info("Parsing %s", filename)
        self.translation_unit = index.parse(self.filename, args=args)

        self.diagnostics: list[str] = []
        for diag in self.translation_unit.diagnostics:
            if diag.severity < cindex.Diagnostic.Warning:
                continue
            message = self._format_diagnostic(diag)
            self.diagnostics.append(message)
            logger.warning("PROBLEM: %s", message)

    @staticmethod
    def _format_diagnostic(diag: cindex.Diagnostic) -> str:
        location = diag.location
        if location.file is None:
            return diag.spelling
        return f"{location.file.name}:{location.line}:{location.column}: {diag.spelling}"

    def declarations(self) -> Iterator[Declaration]:
        for cursor in self.translation_unit.cursor.get_children():
            if cursor.kind != CursorKind.FUNCTION_DECL:
                continue
            yield self.lower_function(cursor)

    def lower_function(self, node: Cursor) -> Declaration:
        specifiers: list[DeclSpecifier] = []
        storage = _STORAGE_SPELLINGS.get(node.storage_class)
        if storage is not None:
            specifiers.append(DeclSpecifier(SpecifierKind.STORAGE, storage))
        for child in node.get_children():
            if child.kind.is_attribute():
                specifiers.append(DeclSpecifier(SpecifierKind.ATTRIBUTE, child.spelling or child.kind.name))

        base, return_declarator = lower_type(node.result_type, IdentDeclarator(node.spelling or None))
        specifiers.extend(_base_specifiers(base))

        func_type = node.type
        declarator = FunctionDeclarator(
            return_declarator,
            tuple(self.lower_param(arg) for arg in node.get_arguments()),
            func_type.kind == TypeKind.FUNCTIONPROTO and func_type.is_function_variadic(),
        )
        location = f"{node.location.file}:{node.location.line}"
        return Declaration(tuple(specifiers), (InitDeclarator(declarator),), location)

    def lower_param(self, node: Cursor) -> ParamDecl:
        ident = IdentDeclarator(node.spelling) if node.spelling else None
        base, declarator = lower_type(node.type, ident)
        return ParamDecl(_base_specifiers(base), declarator)

