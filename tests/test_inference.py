"""
Tests for the type-inference pass and the ``check`` driver.
"""

import pytest

from intrear import (
    check, TypeEnvironment, custom_node,
    Literal, VariableReference, VariableDeclaration, Assignment, Return, Break, Error,
    FunctionLiteral, ArrowFunction, FunctionCall, BinaryOperation, MethodCall,
    ArrayLiteral, ObjectLiteral, IndexAssignment, PropertyAccess,
    Block, If, While, DoWhile, For, ForEach, Switch, SwitchCase, TryCatch,
    NUMBER, STRING, BOOLEAN, NULL, BIGINT, SYMBOL, VOID, ANY, UNDEFINED_TYPE,
    BigInt, Symbol, array_of, object_of, function_of, types_equal,
    TypeMismatchError, UnboundNameError,
)


def ref(name):
    return VariableReference(name)


def lit(value):
    return Literal(value)


def infer(node, env=None):
    return node.infer_type(env or TypeEnvironment.root())


def env_with(**bindings):
    env = TypeEnvironment.root()
    for name, t in bindings.items():
        env.define(name, t)
    return env


# =============================================================================
# Expressions
# =============================================================================

class TestLiteralInference:
    """Test literal and collection types."""

    @pytest.mark.parametrize("value,expected", [
        (1, NUMBER),
        (1.5, NUMBER),
        ("s", STRING),
        (False, BOOLEAN),
        (None, NULL),
        (BigInt(10), BIGINT),
        (Symbol("s"), SYMBOL),
    ])
    def test_scalar(self, value, expected):
        assert infer(lit(value)) == expected

    def test_undefined_literal(self):
        assert infer(Literal()) == UNDEFINED_TYPE

    def test_array_literal(self):
        """[1, 2, 3] infers to Array<number>."""
        assert infer(ArrayLiteral([lit(1), lit(2), lit(3)])) == array_of(NUMBER)

    def test_mixed_array_degrades_to_any(self):
        assert infer(ArrayLiteral([lit(1), lit("a")])) == array_of(ANY)
        assert infer(ArrayLiteral([])) == array_of(ANY)

    def test_object_literal(self):
        node = ObjectLiteral({"n": lit(1), "tags": ArrayLiteral([lit("a")])})
        assert infer(node) == object_of({"n": NUMBER, "tags": array_of(STRING)})


class TestDeclarationInference:
    """Test declaration and assignment checks."""

    def test_declaration_binds_type(self):
        env = env_with()
        assert infer(VariableDeclaration("string", "s", lit("x")), env) == STRING
        assert env.lookup("s") == STRING

    def test_number_kind_rejects_string(self):
        """The inference pass also rejects a string initializer for a number."""
        with pytest.raises(TypeMismatchError) as exc_info:
            infer(VariableDeclaration("number", "x", lit("five")))
        assert exc_info.value.code == "E201"

    def test_shape_kinds(self):
        assert infer(VariableDeclaration("array", "a", ArrayLiteral([lit(1)]))) == array_of(NUMBER)
        with pytest.raises(TypeMismatchError):
            infer(VariableDeclaration("array", "a", ObjectLiteral({})))
        with pytest.raises(TypeMismatchError):
            infer(VariableDeclaration("function", "f", lit(1)))

    def test_unsupported_kind(self):
        with pytest.raises(TypeMismatchError) as exc_info:
            infer(VariableDeclaration("any", "a", lit(1)))
        assert exc_info.value.code == "E203"

    def test_unbound_type_name(self):
        with pytest.raises(UnboundNameError) as exc_info:
            infer(ref("ghost"))
        assert exc_info.value.message == "undefined type name: ghost"

    def test_assignment(self):
        env = env_with(x=NUMBER)
        assert infer(Assignment("x", lit(2)), env) == NUMBER
        with pytest.raises(TypeMismatchError):
            infer(Assignment("x", lit("two")), env)
        with pytest.raises(UnboundNameError):
            infer(Assignment("y", lit(1)), env)

    def test_signals_and_errors_are_void(self):
        assert infer(Break()) == VOID
        assert infer(Error(lit("x"))) == VOID
        assert infer(Return()) == VOID
        assert infer(Return(lit(1))) == NUMBER


class TestOperatorInference:
    """Test operator typing rules."""

    @pytest.mark.parametrize("op", ["+", "o_plus", "-", "o_mul", "/", "//", "^"])
    def test_arithmetic(self, op):
        assert infer(BinaryOperation(op, lit(1), lit(2))) == NUMBER

    def test_arithmetic_rejects_strings(self):
        with pytest.raises(TypeMismatchError):
            infer(BinaryOperation("o_plus", lit("a"), lit(1)))

    def test_comparison(self):
        assert infer(BinaryOperation("o_lt", lit("a"), lit("b"))) == BOOLEAN
        with pytest.raises(TypeMismatchError):
            infer(BinaryOperation("==", lit(1), lit("1")))

    def test_boolean(self):
        assert infer(BinaryOperation("&&", lit(True), lit(False))) == BOOLEAN
        with pytest.raises(TypeMismatchError):
            infer(BinaryOperation("o_or", lit(1), lit(True)))

    def test_string_concat(self):
        assert infer(BinaryOperation("><", lit(1), lit(True))) == STRING

    def test_concat(self):
        node = BinaryOperation("concat", ArrayLiteral([lit(1)]), ArrayLiteral([lit(2)]))
        assert infer(node) == array_of(NUMBER)
        node = BinaryOperation("o_concat", ArrayLiteral([]), ArrayLiteral([lit(2)]))
        assert infer(node) == array_of(ANY)

    def test_concat_mismatched_elements(self):
        """[1,2,3] concat ["a"] is a type mismatch."""
        node = BinaryOperation(
            "concat",
            ArrayLiteral([lit(1), lit(2), lit(3)]),
            ArrayLiteral([lit("a")]),
        )
        with pytest.raises(TypeMismatchError):
            infer(node)

    def test_concat_requires_arrays(self):
        with pytest.raises(TypeMismatchError):
            infer(BinaryOperation("concat", ArrayLiteral([]), lit(1)))


class TestFunctionInference:
    """Test function literal, arrow and call typing."""

    def test_typed_function(self):
        env = env_with()
        add = FunctionLiteral(
            "add", ["a", "b"],
            [Return(BinaryOperation("+", ref("a"), ref("b")))],
            param_types=[NUMBER, NUMBER], return_type=NUMBER,
        )
        expected = function_of([NUMBER, NUMBER], NUMBER)
        assert infer(add, env) == expected
        assert env.lookup("add") == expected
        assert infer(FunctionCall("add", [lit(1), lit(2)]), env) == NUMBER

    def test_return_type_mismatch(self):
        bad = FunctionLiteral("bad", [], [Return(lit("s"))], param_types=[], return_type=NUMBER)
        with pytest.raises(TypeMismatchError):
            infer(bad)

    def test_recursive_function(self):
        n = ref("n")
        fact = FunctionLiteral("fact", ["n"], [
            If(BinaryOperation("<=", n, lit(1)), [Return(lit(1))]),
            Return(BinaryOperation("*", n, FunctionCall(
                "fact", [BinaryOperation("-", n, lit(1))]))),
        ], param_types=[NUMBER], return_type=NUMBER)
        assert infer(VariableDeclaration("function", "fact", fact)) == function_of([NUMBER], NUMBER)

    def test_untyped_params_are_any(self):
        identity = FunctionLiteral("id", ["v"], [Return(ref("v"))])
        assert infer(identity) == function_of([ANY], ANY)

    def test_arrow_params_are_any(self):
        assert infer(ArrowFunction(["a"], lit(1))) == function_of([ANY], NUMBER)

    def test_any_is_not_numeric(self):
        """any is not a wildcard, so (n) => n + n does not type-check."""
        double = ArrowFunction(["n"], BinaryOperation("+", ref("n"), ref("n")))
        with pytest.raises(TypeMismatchError):
            infer(VariableDeclaration("function", "double", double))

    def test_call_checks(self):
        assert infer(FunctionCall("sqrt", [lit(4)])) == NUMBER
        with pytest.raises(TypeMismatchError):
            infer(FunctionCall("sqrt", [lit("4")]))
        with pytest.raises(TypeMismatchError):
            infer(FunctionCall("sqrt", []))
        with pytest.raises(TypeMismatchError):
            infer(FunctionCall("x", []), env_with(x=NUMBER))

    def test_print_is_variadic(self):
        assert infer(FunctionCall("print", [lit(1), lit("a"), lit(None)])) == VOID
        with pytest.raises(UnboundNameError):
            infer(FunctionCall("print", [ref("ghost")]))


class TestMethodAndAccessInference:
    """Test method calls, property access and index assignment."""

    @pytest.mark.parametrize("target,method,expected", [
        (lit("s"), "length", NUMBER),
        (lit("s"), "toUpperCase", STRING),
        (lit("s"), "parseFloat", NUMBER),
        (lit(3), "toString", STRING),
        (ArrayLiteral([lit(1)]), "pop", NUMBER),
        (ArrayLiteral([lit(1)]), "push", NUMBER),
        (ArrayLiteral([lit(1)]), "map", array_of(ANY)),
        (lit("s"), "reverse", ANY),
        (ObjectLiteral({}), "anything", ANY),
    ])
    def test_methods(self, target, method, expected):
        assert infer(MethodCall(target, method)) == expected

    def test_property_access(self):
        env = env_with(o=object_of({"a": NUMBER}))
        assert infer(PropertyAccess(ref("o"), "a"), env) == NUMBER
        assert infer(PropertyAccess(ref("o"), "b"), env) == ANY
        assert infer(PropertyAccess(ref("o"), lit("a")), env) == ANY

    def test_index_assignment(self):
        env = env_with(xs=array_of(NUMBER))
        assert infer(IndexAssignment(ref("xs"), lit(0), lit(5)), env) == NUMBER
        with pytest.raises(TypeMismatchError):
            infer(IndexAssignment(ref("xs"), lit(0), lit("s")), env)
        with pytest.raises(TypeMismatchError):
            infer(IndexAssignment(ref("xs"), lit("0"), lit(5)), env)
        with pytest.raises(TypeMismatchError):
            infer(IndexAssignment(lit(1), lit(0), lit(5)), env)


# =============================================================================
# Statements
# =============================================================================

class TestStatementInference:
    """Test control-flow typing."""

    def test_block_type_is_last_statement(self):
        env = env_with()
        assert infer(Block([lit(1), lit("s")]), env) == STRING
        assert infer(Block([]), env) == VOID
        infer(Block([VariableDeclaration("number", "inner", lit(1))]), env)
        assert not env.contains("inner")

    def test_condition_must_be_boolean(self):
        for node in (
            If(lit(1), []),
            While(lit("x"), []),
            DoWhile([], lit(None)),
            For(None, lit(0), None, []),
        ):
            with pytest.raises(TypeMismatchError):
                infer(node)

    def test_loop_bodies_are_checked(self):
        bad = VariableDeclaration("number", "n", lit("s"))
        with pytest.raises(TypeMismatchError):
            infer(While(lit(True), [bad]))
        with pytest.raises(TypeMismatchError):
            infer(If(lit(True), [], [bad]))

    def test_for_loop_scope(self):
        i = ref("i")
        node = For(
            VariableDeclaration("number", "i", lit(0)),
            BinaryOperation("<", i, lit(3)),
            Assignment("i", BinaryOperation("+", i, lit(1))),
            [FunctionCall("print", [i])],
        )
        assert infer(node) == VOID

    def test_for_each_binds_element_type(self):
        ok = ForEach("v", ArrayLiteral([lit(1)]), [VariableDeclaration("number", "n", ref("v"))])
        assert infer(ok) == VOID
        bad = ForEach("v", ArrayLiteral([lit(1)]), [VariableDeclaration("string", "s", ref("v"))])
        with pytest.raises(TypeMismatchError):
            infer(bad)
        with pytest.raises(TypeMismatchError):
            infer(ForEach("v", lit("abc"), []))

    def test_switch_case_types(self):
        ok = Switch(lit(1), [SwitchCase(lit(2), [])], default=[])
        assert infer(ok) == VOID
        with pytest.raises(TypeMismatchError):
            infer(Switch(lit(1), [SwitchCase(lit("1"), [])]))

    def test_catch_variable_is_error_object(self):
        node = TryCatch([Error(lit("x"))], "e", [
            VariableDeclaration("string", "msg", PropertyAccess(ref("e"), "message")),
            VariableDeclaration("string", "code", PropertyAccess(ref("e"), "code")),
        ])
        assert infer(node) == VOID

    def test_custom_node_type(self):
        assert infer(custom_node(lambda ctx: 1, NUMBER)) == NUMBER


# =============================================================================
# check() Driver
# =============================================================================

class TestCheck:
    """Test the opt-in checking driver."""

    def test_clean_program(self):
        result = check([
            VariableDeclaration("number", "x", lit(5)),
            VariableDeclaration("array", "xs", ArrayLiteral([ref("x")])),
        ])
        assert not result.has_errors
        assert result.diagnostics == []
        assert result.bindings == {"x": NUMBER, "xs": array_of(NUMBER)}
        assert result.node_types == [NUMBER, array_of(NUMBER)]

    def test_collects_one_diagnostic_per_node(self):
        result = check([
            VariableDeclaration("number", "x", lit("five")),
            VariableDeclaration("string", "ok", lit("fine")),
            ref("ghost"),
        ])
        assert result.has_errors
        assert [d.code for d in result.diagnostics] == ["E201", "E202"]
        assert result.node_types[1] == STRING
        assert result.node_types[0] is None
        assert "top-level node 0" in result.diagnostics[0].format()

    def test_max_errors(self):
        result = check([ref("a"), ref("b"), ref("c")], max_errors=2)
        assert len(result.diagnostics) == 2

    def test_check_does_not_execute(self, capsys):
        result = check([FunctionCall("print", [lit("hello")])])
        assert not result.has_errors
        assert capsys.readouterr().out == ""

    def test_redeclared_builtin_is_a_binding(self):
        result = check([VariableDeclaration("number", "print", lit(1))])
        assert result.bindings == {"print": NUMBER}

    def test_passes_are_independent(self):
        """A program can fail inference yet execute fine."""
        from intrear import Interpreter
        program = [
            VariableDeclaration("function", "double",
                                ArrowFunction(["n"], BinaryOperation("+", ref("n"), ref("n")))),
            VariableDeclaration("number", "r", FunctionCall("double", [lit(4)])),
        ]
        assert check(program).has_errors
        assert Interpreter(program).execute().lookup("r") == 8
        assert types_equal(infer(lit(1)), NUMBER)
