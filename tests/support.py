import unittest
from typing import List, Tuple

from cox.driver import Cox, RunResult
from cox.parser import Parser
from cox.scanner import Scanner


def run_source(source: str, cox: Cox = None) -> Tuple[List[str], RunResult]:
    """Run ``source`` and return everything it printed along with the result."""
    output: List[str] = []
    if cox is None:
        cox = Cox(runtime={'println': output.append})
    else:
        cox.interpreter.runtime['println'] = output.append
    return output, cox.run(source)


def parse_source(source: str):
    scanned = Scanner().scan(source)
    return Parser().parse(scanned.tokens)


class CoxTestCase(unittest.TestCase):

    def assertOutput(self, source: str, *expected: str):
        output, result = run_source(source)
        self.assertEqual(result.static_errors, [])
        self.assertIsNone(result.runtime_error)
        self.assertEqual(output, list(expected))

    def assertStaticError(self, source: str, message: str) -> RunResult:
        output, result = run_source(source)
        self.assertIn(message, [error.message for error in result.static_errors])
        self.assertEqual(output, [])
        return result

    def assertRuntimeError(self, source: str, message: str, line: int = None) -> List[str]:
        output, result = run_source(source)
        self.assertEqual(result.static_errors, [])
        self.assertIsNotNone(result.runtime_error)
        self.assertEqual(result.runtime_error.message, message)
        if line is not None:
            self.assertEqual(result.runtime_error.token.line, line)
        return output
