"""LuaSharp: a C# to Lua transpiler."""

__version__ = "0.1.0"
