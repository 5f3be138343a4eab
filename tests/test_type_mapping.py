import pytest

from gen_mkl_rs.type_mapping import (get_c_type_map, get_c_type_pairs,
                                     map_return_type, map_type)


@pytest.mark.parametrize("c_type,expected", [
    ("size_t", "usize"),
    ("int32_t", "i32"),
    ("int", "i32"),
    ("const int", "i32"),
    ("const int32_t", "i32"),
    ("int64_t", "i64"),
    ("const double *", "*const Self"),
    ("const float *", "*const Self"),
    ("const double[]", "*const Self"),
    ("const float[]", "*const Self"),
    ("double *", "*mut Self"),
    ("float *", "*mut Self"),
    ("double[]", "*mut Self"),
    ("float[]", "*mut Self"),
    ("double", "Self"),
    ("float", "Self"),
    ("const double", "Self"),
    ("const float", "Self"),
    ("char", "i8"),
    ("int *", "*mut i32"),
])
def test_table_entries(c_type, expected):
    assert map_type(c_type) == (expected, True)


def test_every_table_entry_is_excluded_from_imports():
    for c_type, rust_type in get_c_type_pairs():
        assert map_type(c_type) == (rust_type, True)
    assert len(get_c_type_map()) == len(get_c_type_pairs())


def test_const_is_stripped_from_unknown_types():
    assert map_type("const MKL_INT") == ("MKL_INT", False)
    assert map_type("const CBLAS_LAYOUT") == ("CBLAS_LAYOUT", False)
    assert map_type("const MKL_INT *") == ("MKL_INT *", False)


def test_unknown_types_pass_through():
    assert map_type("MKL_INT") == ("MKL_INT", False)
    assert map_type("MKL_Complex16 *") == ("MKL_Complex16 *", False)
    assert map_type("constant") == ("constant", False)
    assert map_type("") == ("", False)


def test_mapping_is_deterministic():
    for c_type in ("double *", "const MKL_INT", "void *"):
        assert map_type(c_type) == map_type(c_type)


@pytest.mark.parametrize("c_type,expected", [
    ("void", ""),
    ("int", "-> i32"),
    ("int32_t", "-> i32"),
    ("float", "-> Self"),
    ("double", "-> Self"),
    ("size_t", "-> usize"),
    ("int64_t", "-> i64"),
    ("MKL_INT", "-> MKL_INT"),
    ("void *", "-> void *"),
])
def test_return_clause(c_type, expected):
    assert map_return_type(c_type) == expected


def test_type_map_is_built_once_and_read_only():
    assert get_c_type_map() is get_c_type_map()
    with pytest.raises(TypeError):
        get_c_type_map()["long"] = "i64"
