import unittest

from cox.nodes import Assign, Variable
from cox.resolver import Resolver

from .support import CoxTestCase, parse_source


class TestResolutionErrors(CoxTestCase):

    def test_local_read_in_own_initializer(self):
        result = self.assertStaticError("{ var a = a; }",
                                        "Cannot read local variable in its own initializer.")
        self.assertEqual(result.static_errors[0].where, " at 'a'")

    def test_global_read_in_own_initializer_is_allowed(self):
        # Globals are not tracked; the lookup fails at run time instead.
        self.assertRuntimeError("var a = a;", "Undefined variable 'a'.")

    def test_duplicate_local(self):
        self.assertStaticError("{ var a = 1; var a = 2; }",
                               "Variable with this name already declared in this scope.")

    def test_duplicate_global_is_allowed(self):
        self.assertOutput("var a = 1; var a = 2; print a;", "2")

    def test_duplicate_parameter(self):
        self.assertStaticError("func f(a, a) {}",
                               "Variable with this name already declared in this scope.")

    def test_return_at_top_level(self):
        self.assertStaticError("return 1;", "Cannot return from top-level code.")

    def test_return_value_from_initializer(self):
        self.assertStaticError("class A { init() { return 1; } }",
                               "Cannot return a value from an initializer.")

    def test_bare_return_from_initializer_is_allowed(self):
        self.assertOutput("class A { init() { return; } } print A();", "A instance")

    def test_this_outside_class(self):
        self.assertStaticError("print this;", "Cannot use 'this' outside of a class.")
        self.assertStaticError("func f() { return this; }", "Cannot use 'this' outside of a class.")

    def test_super_outside_class(self):
        self.assertStaticError("print super.x;", "Cannot use 'super' outside of a class.")

    def test_super_without_superclass(self):
        self.assertStaticError("class A { f() { return super.f(); } }",
                               "Cannot use 'super' in a class with no superclass.")

    def test_class_inheriting_from_itself(self):
        self.assertStaticError("class A < A {}", "A class cannot inherit from itself.")

    def test_errors_prevent_execution(self):
        self.assertStaticError('print "before"; { var a = a; }',
                               "Cannot read local variable in its own initializer.")


class TestDistances(unittest.TestCase):

    def resolve(self, source):
        parsed = parse_source(source)
        self.assertEqual(parsed.errors, [])
        resolution = Resolver().resolve(parsed.statements)
        self.assertEqual(resolution.errors, [])
        return parsed.statements, resolution.locals

    def test_globals_are_not_recorded(self):
        _, locals_ = self.resolve("var a = 1; print a;")
        self.assertEqual(locals_, {})

    def test_hops_count_enclosing_blocks(self):
        statements, locals_ = self.resolve("{ var a = 1; { { print a; } } }")
        inner = statements[0].statements[1].statements[0].statements[0]
        self.assertIsInstance(inner.expression, Variable)
        self.assertEqual(locals_[inner.expression], 2)

    def test_assignment_in_same_scope(self):
        statements, locals_ = self.resolve("{ var a; a = 2; }")
        assign = statements[0].statements[1].expression
        self.assertIsInstance(assign, Assign)
        self.assertEqual(locals_[assign], 0)

    def test_parameters_share_the_body_frame(self):
        statements, locals_ = self.resolve("func f(x) { return x; }")
        ret = statements[0].body[0]
        self.assertEqual(locals_[ret.value], 0)


if __name__ == "__main__":
    unittest.main()
