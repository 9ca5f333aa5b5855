"""Tests for Lua code generation."""

from __future__ import annotations

import re
from dataclasses import dataclass

from luasharp.builder import transpile_source
from luasharp.ir import ClassNode, GenericNode, MethodNode, NamespaceNode, Parameter
from luasharp.lua_emitter import EmissionBuffer, LuaEmitter, emit_lua
from luasharp.scope import ScopeKind
from tests.helpers import emit


def index_of(lines: list[str], text: str) -> int:
    """Helper: position of the first line equal to *text* (stripped)."""
    stripped = [line.strip() for line in lines]
    assert text in stripped, f"{text!r} not in output:\n" + "\n".join(lines)
    return stripped.index(text)


class TestEndToEnd:
    def test_namespace_class_method(self):
        lua = transpile_source("namespace A { class B { int Foo(string x) { return 1; } } }")
        assert lua == (
            "local A = {}\n"
            "A.__index = A\n"
            "\n"
            "local B = {}\n"
            "B.__index = B\n"
            "\n"
            "B.Foo = function(x)\n"
            "    -- body not translated\n"
            "    return 0\n"
            "end\n"
            "\n"
            "A.B = B\n"
        )

    def test_using_becomes_comment(self):
        lines = emit("using System;\nclass C { }")
        assert lines[0] == "-- Using: System"
        assert lines[1] == "local C = {}"

    def test_empty_source(self):
        assert transpile_source("") == ""


class TestOrdering:
    def test_attachment_follows_every_method(self):
        lines = emit("""
            namespace NS {
                class C {
                    void First() { }
                    int Second(int a) => a;
                    string Third() { return ""; }
                }
            }
        """)
        attach = index_of(lines, "NS.C = C")
        assert index_of(lines, "local C = {}") < attach
        for method in ("First", "Second", "Third"):
            assert lines.index(next(line for line in lines if line.startswith(f"C.{method} ="))) < attach
        assert lines[-1] == "NS.C = C"

    def test_namespace_table_precedes_its_classes(self):
        lines = emit("namespace NS { class A { } class B { } }")
        ns = index_of(lines, "local NS = {}")
        assert ns < index_of(lines, "local A = {}") < index_of(lines, "NS.A = A")
        assert index_of(lines, "NS.A = A") < index_of(lines, "local B = {}")

    def test_nested_class_attaches_to_outer(self):
        lines = emit("namespace N { class Outer { class Inner { void M() { } } void O() { } } }")
        outer_attach = index_of(lines, "N.Outer = Outer")
        inner_table = index_of(lines, "local Inner = {}")
        inner_attach = index_of(lines, "Outer.Inner = Inner")
        assert index_of(lines, "Outer.O = function()") < outer_attach < inner_table
        assert index_of(lines, "Inner.M = function()") < inner_attach
        assert "N.Inner = Inner" not in lines

    def test_nested_namespace_attaches_to_parent(self):
        lines = emit("namespace A { namespace B { class C { } } }")
        assert index_of(lines, "local A = {}") < index_of(lines, "local A_B = {}")
        assert index_of(lines, "local A_B = {}") < index_of(lines, "A.B = A_B")
        assert index_of(lines, "A_B.C = C") > index_of(lines, "A.B = A_B")

    def test_dotted_namespace_is_one_table(self):
        lines = emit("namespace Company.Product { class Widget { } }")
        assert "local Company_Product = {}" in lines
        assert lines[-1] == "Company_Product.Widget = Widget"


class TestDeclarationCount:
    def test_one_table_per_declaration(self):
        lines = emit("""
            namespace First { class A { } class B { } }
            namespace Second { class C { } }
            class Loose { void Run() { } }
        """)
        tables = [line for line in lines if line.startswith("local ")]
        assert tables == [
            "local First = {}",
            "local A = {}",
            "local B = {}",
            "local Second = {}",
            "local C = {}",
            "local Loose = {}",
        ]
        attachments = [
            line for line in lines
            if re.fullmatch(r"\w+\.\w+ = \w+", line) and "__index" not in line
        ]
        assert attachments == ["First.A = A", "First.B = B", "Second.C = C"]

    def test_partial_class_parts_share_one_table(self):
        lines = emit("""
            namespace NS {
                public partial class Foo { public void A() { } }
                public partial class Foo { public void B() { } }
            }
        """)
        assert [line for line in lines if line.startswith("local Foo")] == [
            "local Foo = {}",
            "local Foo = Foo or {}",
        ]
        reopen = index_of(lines, "local Foo = Foo or {}")
        assert index_of(lines, "Foo.A = function()") < reopen < index_of(lines, "Foo.B = function()")
        assert lines[-1] == "NS.Foo = Foo"

    def test_repeated_namespace_block_reopens_its_table(self):
        lines = emit("namespace N { class A { } }\nnamespace N { class B { } }")
        assert [line for line in lines if line.startswith("local N")] == [
            "local N = {}",
            "local N = N or {}",
        ]
        assert "N.A = A" in lines
        assert lines[-1] == "N.B = B"

    def test_root_class_is_not_attached(self):
        lines = emit("class Loose { }")
        assert lines == ["local Loose = {}", "Loose.__index = Loose"]


class TestNameCollisions:
    def test_class_named_like_its_namespace(self):
        lua = transpile_source("namespace Foo { public class Foo { public int M() { return 1; } } }")
        assert lua == (
            "local Foo = {}\n"
            "Foo.__index = Foo\n"
            "\n"
            "local Foo_Foo = {}\n"
            "Foo_Foo.__index = Foo_Foo\n"
            "\n"
            "Foo_Foo.M = function()\n"
            "    -- body not translated\n"
            "    return 0\n"
            "end\n"
            "\n"
            "Foo.Foo = Foo_Foo\n"
        )

    def test_class_named_like_outer_namespace(self):
        lines = emit("namespace A { namespace B { class A { void M() { } } } namespace C { } }")
        assert "local A_B_A = {}" in lines
        assert "A_B_A.M = function()" in lines
        assert "A_B.A = A_B_A" in lines
        assert "A.C = C" in lines
        assert [line for line in lines if line.startswith("local A ")] == ["local A = {}"]

    def test_nested_class_named_like_its_outer_namespace(self):
        lines = emit("namespace Outer { class Holder { class Outer { void M() { } } } }")
        assert "local Outer_Holder_Outer = {}" in lines
        assert "Outer_Holder_Outer.M = function()" in lines
        assert lines[-1] == "Holder.Outer = Outer_Holder_Outer"
        assert "Outer.Holder = Holder" in lines

    def test_fallback_suffix_when_every_candidate_is_taken(self):
        buffer = EmissionBuffer()
        assert buffer.allocate((ScopeKind.NAMESPACE, None, "X"), "X") == "X"
        assert buffer.allocate((ScopeKind.CLASS, "X", "X"), "X", "X") == "X_2"
        assert buffer.allocate((ScopeKind.CLASS, None, "X"), "X") == "X_3"


class TestUnmodeledRefDeclarations:
    def test_ref_struct_is_skipped_and_class_still_emitted(self):
        lines = emit("namespace N { public ref struct S { } public class C { public int M() { return 0; } } }")
        assert "local S = {}" not in lines
        assert "C.M = function()" in lines
        assert lines[-1] == "N.C = C"

    def test_ref_returning_method_is_emitted(self):
        lines = emit("class C { public ref int Get(int[] xs) => ref xs[0]; public ref readonly bool Ok() => ref _ok; }")
        assert index_of(lines, "C.Get = function(xs)") < index_of(lines, "C.Ok = function()")
        returns = [line.strip() for line in lines if line.strip().startswith("return")]
        assert returns == ["return 0", "return false"]


class TestMethods:
    def test_void_method_has_no_return(self):
        lines = emit("class C { void Run(int a, string b) { } }")
        start = index_of(lines, "C.Run = function(a, b)")
        assert lines[start + 1:start + 3] == ["    -- body not translated", "end"]

    def test_return_placeholders(self):
        lines = emit("""
            class C {
                bool Ok() => true;
                double Ratio() => 1.0;
                object Thing() => null;
                int? Maybe() => null;
                Widget Make() => new Widget();
            }
        """)
        returns = [line.strip() for line in lines if line.strip().startswith("return")]
        assert returns == ["return false", "return 0.0", "return nil", "return nil", "return Widget"]

    def test_lua_keywords_are_escaped(self):
        lines = emit("class C { void end(int and) { } }")
        assert "C.end_ = function(and_)" in lines

    def test_parameter_type_annotations_are_dropped(self):
        lines = emit("class C { void M(ref int a, List<string> b, params object[] rest) { } }")
        assert "C.M = function(a, b, rest)" in lines

    def test_method_outside_class_context(self):
        lua = emit_lua([MethodNode(name="Helper", return_type="int")])
        assert lua.splitlines() == [
            "local function Helper()",
            "    -- body not translated",
            "    return 0",
            "end",
        ]


class TestFallback:
    def test_generic_node_emits_stub(self):
        node = GenericNode(kind="Property", name="Count")
        assert emit_lua([node]) == "-- Property: Count\n"

    def test_generic_node_recurses_into_children(self):
        node = GenericNode(kind="Region", name="Helpers", children=(ClassNode(name="Util"),))
        lines = emit_lua([node]).splitlines()
        assert lines[0] == "-- Region: Helpers"
        assert "local Util = {}" in lines

    def test_unregistered_node_does_not_crash(self):
        @dataclass(frozen=True)
        class Mystery:
            name: str

        assert emit_lua([Mystery(name="Thing")]) == "-- Mystery: Thing\n"


class TestIdempotence:
    SOURCE = """
        using System;
        namespace Game.Core {
            public class Player {
                public int Score(int bonus) { return bonus; }
                public void Reset() { }
                class Stats { double Average() => 0; }
            }
        }
        class Program { static void Main(string[] args) { } }
    """

    def test_same_input_same_output(self):
        assert transpile_source(self.SOURCE) == transpile_source(self.SOURCE)

    def test_emitter_instance_is_reusable(self):
        emitter = LuaEmitter()
        nodes = [ClassNode(name="C", children=(MethodNode(name="M", return_type="int"),))]
        assert emitter.emit(nodes) == emitter.emit(nodes)


class TestEmissionBuffer:
    def test_shared_buffer_across_batches(self):
        emitter = LuaEmitter()
        buffer = EmissionBuffer()
        emitter.emit_into(buffer, [NamespaceNode(name="A", children=(ClassNode(name="X", namespace="A"),))])
        emitter.emit_into(buffer, [ClassNode(name="Y")])
        lines = [line for line in buffer.text().splitlines() if line]
        assert lines == [
            "local A = {}",
            "A.__index = A",
            "local X = {}",
            "X.__index = X",
            "A.X = X",
            "local Y = {}",
            "Y.__index = Y",
        ]

    def test_no_stacked_blank_lines(self):
        lua = transpile_source("namespace A { class B { void M() { } } }\nclass C { }")
        assert "\n\n\n" not in lua
        assert lua.endswith("\n") and not lua.endswith("\n\n")

    def test_indentation(self):
        buffer = EmissionBuffer()
        buffer.line("a")
        buffer.indent += 1
        buffer.line("b")
        buffer.line()
        assert buffer.lines == ["a", "    b", ""]
        assert buffer.text() == "a\n    b\n"

    def test_method_parameters_from_ir(self):
        method = MethodNode(
            name="Add", return_type="long",
            parameters=(Parameter("x", "long"), Parameter("y", "long")),
        )
        lua = emit_lua([ClassNode(name="Math", children=(method,))])
        assert "Math.Add = function(x, y)" in lua
        assert "    return 0" in lua
