"""C# type name -> Lua placeholder value mapping."""

from __future__ import annotations

# ── Primitive mapping ─────────────────────────────────────────────

_INTEGER_TYPES = (
    "int", "long", "short", "byte", "sbyte", "uint", "ulong", "ushort",
    "nint", "nuint", "Int16", "Int32", "Int64", "UInt16", "UInt32", "UInt64",
    "Byte", "SByte", "IntPtr", "UIntPtr",
)
_REAL_TYPES = ("float", "double", "decimal", "Single", "Double", "Decimal")
_BOOLEAN_TYPES = ("bool", "Boolean")
_STRING_TYPES = ("string", "char", "String", "Char")
_NIL_TYPES = ("object", "dynamic", "Object")

VOID = "void"

RETURN_PLACEHOLDERS: dict[str, str] = {
    **{t: "0" for t in _INTEGER_TYPES},
    **{t: "0.0" for t in _REAL_TYPES},
    **{t: "false" for t in _BOOLEAN_TYPES},
    **{t: '""' for t in _STRING_TYPES},
    **{t: "nil" for t in _NIL_TYPES},
}


def _strip_system(type_name: str) -> str:
    for prefix in ("global::System.", "System."):
        if type_name.startswith(prefix):
            rest = type_name[len(prefix):]
            if rest in RETURN_PLACEHOLDERS or rest == "Void":
                return rest
    return type_name


# ── Public API ─────────────────────────────────────────────────────


def map_return(type_name: str) -> str | None:
    """Map a C# return type to the Lua expression a stub body returns.

    Returns None for ``void``: the stub gets no return statement at all.
    Nullable types (``int?``) return ``nil``. Unrecognized names, generics
    included, pass through unchanged. That is valid Lua for a plain type name
    (it reads a global), but array, generic and tuple types such as
    ``int[]``, ``List<int>`` or ``(int, string)`` come out as text that does
    not parse, so a chunk containing one will not load.
    """
    name = _strip_system(type_name.strip())
    if not name or name in (VOID, "Void"):
        return None
    if name.endswith("?"):
        return "nil"
    return RETURN_PLACEHOLDERS.get(name, name)
