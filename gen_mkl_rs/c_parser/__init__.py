from .c_parser import CParser
from .declarations import (ArrayDeclarator, Declaration, DeclarationSource,
                           DeclSpecifier, FunctionDeclarator, IdentDeclarator,
                           InitDeclarator, ParamDecl, PointerDeclarator,
                           SpecifierKind, StaticDeclarationSource)
from .extractor import extract_function, extract_functions
from .function_info import FunctionInfo, ParamInfo

__all__ = [
    'CParser',
    'ArrayDeclarator',
    'Declaration',
    'DeclarationSource',
    'DeclSpecifier',
    'FunctionDeclarator',
    'IdentDeclarator',
    'InitDeclarator',
    'ParamDecl',
    'PointerDeclarator',
    'SpecifierKind',
    'StaticDeclarationSource',
    'FunctionInfo',
    'ParamInfo',
    'extract_function',
    'extract_functions',
]
