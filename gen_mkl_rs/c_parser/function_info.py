from dataclasses import dataclass

from gen_mkl_rs.type_mapping import map_return_type, map_type


@dataclass(frozen=True)
class ParamInfo:
    name: str
    c_type: str
    rust_type: str
    # primitives and pointers to Self need no `use`
    exclude_from_imports: bool

    @classmethod
    def from_c(cls, name: str, c_type: str) -> "ParamInfo":
        rust_type, exclude_from_imports = map_type(c_type)
        return cls(name, c_type, rust_type, exclude_from_imports)


@dataclass(frozen=True)
class FunctionInfo:
    raw_name: str
    is32: bool
    canonical_name: str
    return_type: str
    params: tuple[ParamInfo, ...] = ()
    location: str = ""

    @property
    def is64(self) -> bool:
        return not self.is32

    def return_declare(self) -> str:
        return map_return_type(self.return_type)

    def rust_params(self) -> list[str]:
        return [f"{p.name}: {p.rust_type}" for p in self.params]

    def call_params(self) -> list[str]:
        return [p.name for p in self.params]

    def c_params(self) -> list[str]:
        r = []
        for p in self.params:
            if p.c_type.endswith("[]"):
                r.append(f"{p.c_type[:-2]} {p.name}[]")
            elif p.c_type.endswith("*"):
                r.append(f"{p.c_type}{p.name}")
            else:
                r.append(f"{p.c_type} {p.name}")
        return r

    def get_signature(self) -> str:
        params = ", ".join(self.c_params()) or "void"
        separator = "" if self.return_type.endswith("*") else " "
        return f"{self.return_type}{separator}{self.raw_name}({params})"

    def __repr__(self):
        return f"FunctionInfo({self.get_signature()})"
