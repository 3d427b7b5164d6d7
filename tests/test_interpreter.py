import unittest

from cox.driver import Cox

from .support import CoxTestCase, run_source


class TestArithmetic(CoxTestCase):

    def test_precedence(self):
        self.assertOutput("print 2 + 3 * 4;", "14")
        self.assertOutput("print (2 + 3) * 4;", "20")

    def test_numbers_print_without_trailing_zero(self):
        self.assertOutput("print 7 / 2; print 1.5 + 1.5; print -0.25;", "3.5", "3", "-0.25")

    def test_string_concatenation(self):
        self.assertOutput('print "foo" + "bar";', "foobar")

    def test_mixed_addition_is_an_error(self):
        self.assertRuntimeError('print 1 + "a";', "Operands must be two numbers or two strings.")

    def test_division_by_zero_follows_ieee(self):
        self.assertOutput("print 1 / 0; print -1 / 0; print 0 / 0;", "Infinity", "-Infinity", "NaN")

    def test_large_and_small_numbers_print_positionally(self):
        self.assertOutput("print 100000000 * 100000000; print 1 / 10000000;",
                          "10000000000000000", "0.0000001")

    def test_comparison_requires_numbers(self):
        self.assertRuntimeError('print "a" < "b";', "Operands must be numbers.")

    def test_negation_requires_number(self):
        output = self.assertRuntimeError('print 1;\nprint -"a";', "Operand must be a number.", line=2)
        self.assertEqual(output, ["1"])

    def test_bitwise_operators(self):
        self.assertOutput(
            "print 6 & 3; print 6 | 3; print 6 ^ 3; print ~0; print 1 << 4; print 256 >> 2;",
            "2", "7", "5", "-1", "16", "64",
        )

    def test_bitwise_precedence(self):
        self.assertOutput("print 1 + 1 << 2; print 1 | 2 == 3;", "8", "true")

    def test_negative_shift(self):
        self.assertRuntimeError("print 1 << -1;", "Shift count must not be negative.")

    def test_bitwise_on_infinity(self):
        self.assertRuntimeError("print ~(1 / 0);", "Operand must be a finite number.")
        self.assertRuntimeError("print (0 / 0) & 1;", "Operand must be a finite number.")

    def test_comma_yields_right_operand(self):
        self.assertOutput("var x = (1, 2); print x;", "2")


class TestValues(CoxTestCase):

    def test_null_and_booleans(self):
        self.assertOutput("var a; print a; print true; print !true;", "null", "true", "false")

    def test_equality(self):
        self.assertOutput(
            'print 1 == 1; print 1 == true; print null == null; print null == false; print "a" != "a";',
            "true", "false", "true", "false", "false",
        )

    def test_truthiness(self):
        self.assertOutput(
            'if (0) print "zero"; if ("") print "empty"; if (null) print "a"; else print "b";',
            "zero", "empty", "b",
        )

    def test_logical_operators_return_operands(self):
        self.assertOutput('print null || "default"; print 1 && 2; print false && nope;',
                          "default", "2", "false")

    def test_conditional(self):
        self.assertOutput("print true ? 1 : 2; print false ? 1 : 2; print false ? 1 : true ? 2 : 3;",
                          "1", "2", "2")

    def test_conditional_short_circuits(self):
        self.assertOutput("var x = 0; true ? 1 : (x = 5); print x;", "0")


class TestVariables(CoxTestCase):

    def test_block_scoping(self):
        self.assertOutput(
            'var a = "outer"; { var a = "inner"; print a; } print a;',
            "inner", "outer",
        )

    def test_assignment_walks_enclosing_frames(self):
        self.assertOutput("var a = 1; { a = 2; } print a;", "2")

    def test_undefined_variable(self):
        self.assertRuntimeError("print y;", "Undefined variable 'y'.")
        self.assertRuntimeError("y = 1;", "Undefined variable 'y'.")

    def test_increment_and_decrement(self):
        self.assertOutput(
            "var a = 1; print a++; print a; print ++a; print --a; print a--; print a;",
            "1", "2", "3", "2", "2", "1",
        )

    def test_increment_requires_number(self):
        self.assertRuntimeError('var s = "a"; s++;', "Operand must be a number.")

    def test_compound_assignment(self):
        self.assertOutput(
            "var c = 10; c += 5; print c; c -= 3; print c; c *= 2; print c; c /= 4; print c;",
            "15", "12", "24", "6",
        )
        self.assertOutput('var s = "a"; s += "b"; print s;', "ab")

    def test_closure_sees_declaration_scope(self):
        source = """
var a = "global";
{
    func showA() { print a; }
    showA();
    var a = "block";
    showA();
}
"""
        self.assertOutput(source, "global", "global")


class TestControlFlow(CoxTestCase):

    def test_while(self):
        self.assertOutput("var i = 0; while (i < 3) { print i; i = i + 1; }", "0", "1", "2")

    def test_for(self):
        self.assertOutput("for (var i = 0; i < 3; i++) print i;", "0", "1", "2")

    def test_break_leaves_nearest_loop_only(self):
        source = """
var i = 0;
while (true) {
    var j = 0;
    while (true) {
        j = j + 1;
        if (j == 3) break;
    }
    print j;
    i = i + 1;
    if (i == 2) break;
}
print i;
"""
        self.assertOutput(source, "3", "3", "2")

    def test_break_in_for(self):
        self.assertOutput("for (var i = 0; i < 10; i = i + 1) { if (i == 3) break; print i; }",
                          "0", "1", "2")

    def test_return_from_inside_loop(self):
        source = """
func find() {
    for (var i = 0; i < 10; i++) {
        if (i == 4) return i;
    }
    return -1;
}
print find();
"""
        self.assertOutput(source, "4")


class TestFunctions(CoxTestCase):

    def test_closure_counter(self):
        source = """
func makeCounter() {
    var i = 0;
    func count() {
        i = i + 1;
        return i;
    }
    return count;
}
var counter = makeCounter();
print counter();
print counter();
"""
        self.assertOutput(source, "1", "2")

    def test_recursion(self):
        source = """
func fib(n) {
    if (n < 2) return n;
    return fib(n - 1) + fib(n - 2);
}
print fib(10);
"""
        self.assertOutput(source, "55")

    def test_missing_return_yields_null(self):
        self.assertOutput("func f() {} print f();", "null")

    def test_function_prints_name(self):
        self.assertOutput("func f() {} print f;", "<fn f>")

    def test_too_few_arguments_does_not_run_body(self):
        output = self.assertRuntimeError('func f(a, b) { print "called"; }\nf(1);',
                                         "Not enough arguments.", line=2)
        self.assertEqual(output, [])

    def test_extra_arguments_are_ignored(self):
        self.assertOutput("func g(a) { print a; } g(1, 2, 3);", "1")

    def test_calling_a_non_callable(self):
        self.assertRuntimeError('"x"();', "Can only call functions and classes.")

    def test_unbounded_recursion_is_a_runtime_error(self):
        self.assertRuntimeError("func f(n) { return f(n + 1); }\nf(0);", "Stack overflow.")


class TestClasses(CoxTestCase):

    def test_fields_and_methods(self):
        source = """
class Point {
    init(x, y) {
        this.x = x;
        this.y = y;
    }
    sum() { return this.x + this.y; }
}
var p = Point(1, 2);
print p.sum();
print p;
print Point;
print p.init(5, 6);
print p.sum();
"""
        self.assertOutput(source, "3", "Point instance", "Point", "Point instance", "11")

    def test_inherited_initializer(self):
        source = """
class Point {
    init(x, y) { this.x = x; this.y = y; }
    sum() { return this.x + this.y; }
}
class Point3 < Point {}
print Point3(3, 4).sum();
"""
        self.assertOutput(source, "7")

    def test_class_arity_comes_from_init(self):
        self.assertRuntimeError("class K { init(a) {} } K();", "Not enough arguments.")

    def test_super_calls_skip_the_override(self):
        source = """
class A {
    method() { return "A method"; }
}
class B < A {
    method() { return "B method"; }
    test() { return super.method(); }
}
class C < B {}
print C().test();
print C().method();
"""
        self.assertOutput(source, "A method", "B method")

    def test_bound_methods_remember_this(self):
        source = """
class Greeter {
    init(name) { this.name = name; }
    hi() { return "hi " + this.name; }
}
var h = Greeter("bob").hi;
print h();
"""
        self.assertOutput(source, "hi bob")

    def test_fields_shadow_methods(self):
        source = """
class A { f() { return "method"; } }
var a = A();
a.f = "field";
print a.f;
"""
        self.assertOutput(source, "field")

    def test_property_increment_and_compound_assignment(self):
        source = """
class Box {}
var b = Box();
b.n = 5;
b.n++;
print b.n;
print ++b.n;
b.n += 10;
print b.n;
"""
        self.assertOutput(source, "6", "7", "17")

    def test_undefined_property(self):
        self.assertRuntimeError("class E {} print E().nope;", "Undefined property 'nope'.")

    def test_property_on_non_instance(self):
        self.assertRuntimeError("var n = 1; print n.x;", "Only instances have properties.")
        self.assertRuntimeError("var n = 1; n.x = 2;", "Only instances have fields.")

    def test_superclass_must_be_a_class(self):
        self.assertRuntimeError("var NotClass = 1; class S < NotClass {}",
                                "Superclass must be a class.")


class TestInterpolation(CoxTestCase):

    def test_values_are_stringified(self):
        self.assertOutput('var name = "Cox"; print $"Hello, {name}!";', "Hello, Cox!")
        self.assertOutput('print $"{1 + 2} items, {null} {true}";', "3 items, null true")

    def test_alignment(self):
        self.assertOutput('print $"[{7,4}]"; print $"[{7,-4}]";', "[   7]", "[7   ]")

    def test_literal_braces(self):
        self.assertOutput('print $"{{literal}}";', "{literal}")

    def test_format_code_is_accepted(self):
        self.assertOutput('print $"{3:N}";', "3")

    def test_alignment_must_be_a_number(self):
        self.assertRuntimeError('var w = "a"; print $"{1,w}";', "Alignment must be a number.")


class TestSession(unittest.TestCase):

    def test_globals_persist_between_runs(self):
        cox = Cox(runtime={'println': lambda s: None})
        run_source("var a = 1;", cox)
        output, _ = run_source("print a;", cox)
        self.assertEqual(output, ["1"])

    def test_runtime_error_resets_to_globals(self):
        cox = Cox(runtime={'println': lambda s: None})
        _, result = run_source("var g = 1; { var inner = 2; print missing; }", cox)
        self.assertTrue(result.had_runtime_error)
        output, result = run_source("print g;", cox)
        self.assertFalse(result.had_runtime_error)
        self.assertEqual(output, ["1"])
        self.assertIs(cox.interpreter.environment, cox.interpreter.globals)

    def test_function_locals_work_in_later_runs(self):
        cox = Cox(runtime={'println': lambda s: None})
        run_source("func show(a) { var b = a + 1; print b; }", cox)
        output, result = run_source("show(1);", cox)
        self.assertIsNone(result.runtime_error)
        self.assertEqual(output, ["2"])

    def test_closures_work_in_later_runs(self):
        cox = Cox(runtime={'println': lambda s: None})
        run_source("func mk() { var i = 0; func count() { i = i + 1; return i; } return count; }", cox)
        run_source("var f = mk();", cox)
        output, result = run_source("print f(); print f();", cox)
        self.assertIsNone(result.runtime_error)
        self.assertEqual(output, ["1", "2"])

    def test_super_methods_work_in_later_runs(self):
        cox = Cox(runtime={'println': lambda s: None})
        run_source("class A { name() { return \"A\"; } }", cox)
        run_source("class B < A { name() { return \"B\" + super.name(); } }", cox)
        output, result = run_source("print B().name();", cox)
        self.assertIsNone(result.runtime_error)
        self.assertEqual(output, ["BA"])

    def test_stack_overflow_leaves_session_usable(self):
        cox = Cox(runtime={'println': lambda s: None})
        _, result = run_source("func f() { f(); } f();", cox)
        self.assertEqual(result.runtime_error.message, "Stack overflow.")
        output, result = run_source("print 1;", cox)
        self.assertEqual(output, ["1"])


if __name__ == "__main__":
    unittest.main()
