from gen_mkl_rs.c_parser import (ArrayDeclarator, Declaration, DeclSpecifier,
                                 FunctionDeclarator, IdentDeclarator,
                                 InitDeclarator, ParamDecl, PointerDeclarator,
                                 SpecifierKind, StaticDeclarationSource,
                                 extract_function, extract_functions)
from gen_mkl_rs.c_parser.declarations import qualifiers, type_specifier
from gen_mkl_rs.c_parser.extractor import (function_name, parameters,
                                           return_type_spelling, type_spelling)
from gen_mkl_rs.pattern_registry import PatternRegistry


def specs(*words):
    """``specs("const", "double")`` -> qualifier specifiers followed by the type."""
    *quals, base = words
    return qualifiers(*quals) + (type_specifier(base),)


def param(specifiers, declarator=None):
    return ParamDecl(specifiers, declarator)


def ident(name):
    return IdentDeclarator(name)


def func_decl(name, params, return_specs=None, return_pointers=0, variadic=False, storage=None):
    specifiers = return_specs if return_specs is not None else specs("void")
    if storage:
        specifiers = (DeclSpecifier(SpecifierKind.STORAGE, storage),) + specifiers
    inner = ident(name)
    for _ in range(return_pointers):
        inner = PointerDeclarator(inner)
    return Declaration(
        specifiers,
        (InitDeclarator(FunctionDeclarator(inner, tuple(params), variadic)),),
        location=f"test.h:{name}",
    )


REGISTRY = PatternRegistry.load("cblas_*axpy\ncblas_*dot\nv*Mul\nf*x\nmkl_*malloc\n")


def axpy(prefix):
    scalar = "double" if prefix == "d" else "float"
    return func_decl(f"cblas_{prefix}axpy", [
        param(specs("const", "MKL_INT"), ident("N")),
        param(specs("const", scalar), ident("alpha")),
        param(specs("const", scalar), PointerDeclarator(ident("X"))),
        param(specs("const", "MKL_INT"), ident("incX")),
        param(specs(scalar), PointerDeclarator(ident("Y"))),
        param(specs("const", "MKL_INT"), ident("incY")),
    ])


def test_type_spelling_skips_non_type_specifiers():
    specifiers = (
        DeclSpecifier(SpecifierKind.STORAGE, "extern"),
        DeclSpecifier(SpecifierKind.FUNCTION, "inline"),
        DeclSpecifier(SpecifierKind.QUALIFIER, "const"),
        DeclSpecifier(SpecifierKind.ATTRIBUTE, "__attribute__((visibility(\"default\")))"),
        DeclSpecifier(SpecifierKind.ALIGNMENT, "_Alignas(16)"),
        DeclSpecifier(SpecifierKind.TYPE, "unsigned"),
        DeclSpecifier(SpecifierKind.TYPE, "int"),
    )
    assert type_spelling(specifiers) == "const unsigned int"


def test_extract_axpy():
    function = extract_function(axpy("d"), REGISTRY)
    assert function.raw_name == "cblas_daxpy"
    assert function.canonical_name == "cblas_axpy"
    assert function.is64 and not function.is32
    assert function.return_type == "void"
    assert [(p.name, p.c_type, p.rust_type, p.exclude_from_imports) for p in function.params] == [
        ("N", "const MKL_INT", "MKL_INT", False),
        ("alpha", "const double", "Self", True),
        ("X", "const double *", "*const Self", True),
        ("incX", "const MKL_INT", "MKL_INT", False),
        ("Y", "double *", "*mut Self", True),
        ("incY", "const MKL_INT", "MKL_INT", False),
    ]


def test_single_precision_flag():
    function = extract_function(axpy("s"), REGISTRY)
    assert function.is32 and not function.is64
    assert function.canonical_name == "cblas_axpy"


def test_parameter_order_is_kept():
    decl = func_decl("fdx", [
        param(specs("int32_t"), ident("p0")),
        param(specs("double"), PointerDeclarator(ident("p1"))),
    ])
    function = extract_function(decl, REGISTRY)
    assert function.rust_params() == ["p0: i32", "p1: *mut Self"]
    assert function.call_params() == ["p0", "p1"]


def test_anonymous_parameters_use_position():
    decl = func_decl("fsx", [
        param(specs("const", "MKL_INT")),
        param(specs("const", "float"), PointerDeclarator(ident("x"))),
        param(specs("float"), PointerDeclarator(None)),
        param(specs("size_t"), ident(None)),
        param(specs("float"), ArrayDeclarator(None)),
    ])
    function = extract_function(decl, REGISTRY)
    assert [p.name for p in function.params] == ["p0", "x", "p2", "p3", "p4"]
    assert [p.c_type for p in function.params] == [
        "const MKL_INT", "const float *", "float *", "size_t", "float[]"]


def test_array_parameters_take_inner_name():
    decl = func_decl("vdMul", [
        param(specs("const", "MKL_INT"), ident("n")),
        param(specs("const", "double"), ArrayDeclarator(ident("a"))),
        param(specs("const", "double"), ArrayDeclarator(ident("b"), "4")),
        param(specs("double"), ArrayDeclarator(ident("r"))),
    ])
    function = extract_function(decl, REGISTRY)
    assert [(p.name, p.c_type, p.rust_type) for p in function.params] == [
        ("n", "const MKL_INT", "MKL_INT"),
        ("a", "const double[]", "*const Self"),
        ("b", "const double[]", "*const Self"),
        ("r", "double[]", "*mut Self"),
    ]


def test_pointer_levels():
    decl = func_decl("fdx", [
        param(specs("double"), PointerDeclarator(PointerDeclarator(ident("pp")))),
        param(specs("int"), PointerDeclarator(ident("info"), ("const",))),
    ])
    function = extract_function(decl, REGISTRY)
    assert [(p.c_type, p.rust_type, p.exclude_from_imports) for p in function.params] == [
        ("double **", "double **", False),
        ("int *", "*mut i32", True),
    ]


def test_void_parameter_list_is_empty():
    decl = func_decl("fdx", [param(specs("void"))], return_specs=specs("int"))
    function = extract_function(decl, REGISTRY)
    assert function.params == ()
    assert function.return_type == "int"


def test_void_pointer_parameter_is_kept():
    decl = func_decl("fdx", [param(specs("void"), PointerDeclarator(ident("buf")))])
    function = extract_function(decl, REGISTRY)
    assert [(p.name, p.c_type) for p in function.params] == [("buf", "void *")]


def test_return_type_with_qualifiers_and_pointers():
    decl = func_decl("mkl_dmalloc", [param(specs("size_t"), ident("n"))],
                     return_specs=specs("const", "double"), return_pointers=1, storage="extern")
    assert return_type_spelling(decl) == "const double *"
    function = extract_function(decl, REGISTRY)
    assert function.return_type == "const double *"
    assert function.get_signature() == "const double *mkl_dmalloc(size_t n)"


def test_unrequested_functions_are_skipped():
    decl = func_decl("cblas_dgemv", [param(specs("int"), ident("n"))])
    assert function_name(decl) == "cblas_dgemv"
    assert extract_function(decl, REGISTRY) is None


def test_non_function_declarations_are_skipped():
    variable = Declaration(specs("double"), (InitDeclarator(ident("fdx")),))
    no_declarator = Declaration(specs("struct point"), ())
    initialized = Declaration(
        specs("double"),
        (InitDeclarator(FunctionDeclarator(ident("fdx")), has_initializer=True),))
    two_declarators = Declaration(specs("double"), (
        InitDeclarator(FunctionDeclarator(ident("fdx"))),
        InitDeclarator(FunctionDeclarator(ident("fsx"))),
    ))
    function_pointer_variable = Declaration(
        specs("double"),
        (InitDeclarator(PointerDeclarator(FunctionDeclarator(ident("fdx")))),))
    for decl in (variable, no_declarator, initialized, two_declarators, function_pointer_variable):
        assert function_name(decl) is None
        assert extract_function(decl, REGISTRY) is None


def test_unnamed_function_is_skipped():
    decl = Declaration(specs("void"), (InitDeclarator(FunctionDeclarator(ident(None))),))
    assert extract_function(decl, REGISTRY) is None
    decl = Declaration(specs("void"), (InitDeclarator(FunctionDeclarator(None)),))
    assert extract_function(decl, REGISTRY) is None


def test_unsupported_shapes_drop_the_function():
    callback = param(specs("void"), PointerDeclarator(FunctionDeclarator(
        ident("cb"), (param(specs("int")),))))
    matrix = param(specs("double"), ArrayDeclarator(ArrayDeclarator(ident("m"), "4"), "4"))
    pointer_array = param(specs("double"), ArrayDeclarator(PointerDeclarator(ident("rows"))))
    array_pointer = param(specs("double"), PointerDeclarator(ArrayDeclarator(ident("rows"))))
    no_type = param((DeclSpecifier(SpecifierKind.STORAGE, "register"),), ident("x"))
    for bad in (callback, matrix, pointer_array, array_pointer, no_type):
        decl = func_decl("fdx", [param(specs("int"), ident("n")), bad])
        assert extract_function(decl, REGISTRY) is None


def test_variadic_function_is_dropped():
    decl = func_decl("fdx", [param(specs("const", "char"), PointerDeclarator(ident("fmt")))], variadic=True)
    assert extract_function(decl, REGISTRY) is None


def test_parameters_directly():
    func = FunctionDeclarator(ident("f"), (
        param(specs("char"), ident("uplo")),
        param(specs("int64_t")),
    ))
    assert [(p.name, p.rust_type) for p in parameters(func)] == [("uplo", "i8"), ("p1", "i64")]


def test_extract_functions_keeps_order_and_first_declaration():
    first = axpy("d")
    redeclared = func_decl("cblas_daxpy", [param(specs("int"), ident("other"))])
    source = StaticDeclarationSource([
        axpy("s"),
        func_decl("cblas_dgemv", []),
        first,
        redeclared,
        func_decl("vsMul", [param(specs("const", "MKL_INT"), ident("n"))]),
    ])
    functions = extract_functions(source, REGISTRY)
    assert [f.raw_name for f in functions] == ["cblas_saxpy", "cblas_daxpy", "vsMul"]
    assert functions[1].params[0].name == "N"
