import argparse
import logging
import sys
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .errors import CoxRuntimeError, ErrorCallback, StaticError
from .interpreter import Interpreter
from .parser import Parser
from .printer import to_source
from .resolver import Resolver
from .scanner import Scanner

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 64
EXIT_STATIC_ERROR = 65
EXIT_NO_INPUT = 66
EXIT_RUNTIME_ERROR = 70

PROMPT = "> "

# ==================== PIPELINE ====================

@dataclass
class RunResult:
    static_errors: List[StaticError] = field(default_factory=list)
    runtime_error: Optional[CoxRuntimeError] = None
    # Re-serialized program, only filled in by ``print_ast``.
    source: Optional[str] = None

    @property
    def had_error(self) -> bool:
        return bool(self.static_errors)

    @property
    def had_runtime_error(self) -> bool:
        return self.runtime_error is not None


class Cox:
    """Main class that coordinates all pipeline stages.

    One instance keeps a single interpreter, so globals defined by one
    ``run`` call are visible to the next.
    """

    def __init__(self, runtime: Optional[Dict[str, Callable[[str], None]]] = None,
                 on_error: Optional[ErrorCallback] = None):
        self.on_error = on_error
        self.scanner = Scanner(on_error)
        self.parser = Parser(on_error)
        self.resolver = Resolver(on_error)
        self.interpreter = Interpreter(runtime)

    def run(self, source: str, check: bool = False, print_ast: bool = False) -> RunResult:
        """Scan, parse, resolve and (unless ``check``) execute one unit.

        Parse errors stop the unit before resolution; resolution errors stop
        it before execution.
        """
        result = RunResult()

        scanned = self.scanner.scan(source)
        result.static_errors.extend(scanned.errors)

        parsed = self.parser.parse(scanned.tokens)
        result.static_errors.extend(parsed.errors)
        if result.had_error:
            return result

        if print_ast:
            result.source = to_source(parsed.statements)
            return result

        resolution = self.resolver.resolve(parsed.statements)
        result.static_errors.extend(resolution.errors)
        if result.had_error or check:
            return result

        result.runtime_error = self.interpreter.interpret(parsed.statements, resolution.locals)
        return result

# ==================== COMMAND LINE ====================

def report_static_error(error: StaticError):
    print(error, file=sys.stderr)


def report_runtime_error(error: CoxRuntimeError):
    print(error, file=sys.stderr)


def run_file(cox: Cox, path: str, check: bool, print_ast: bool) -> int:
    try:
        with open(path, "r", encoding="utf-8") as f:
            source = f.read()
    except OSError as e:
        print(f"Could not read {path}: {e.strerror}", file=sys.stderr)
        return EXIT_NO_INPUT

    result = cox.run(source, check=check, print_ast=print_ast)

    if result.had_error:
        return EXIT_STATIC_ERROR
    if result.had_runtime_error:
        report_runtime_error(result.runtime_error)
        return EXIT_RUNTIME_ERROR

    if result.source is not None:
        print(result.source, end="")
    return EXIT_OK


def run_prompt(cox: Cox, check: bool, print_ast: bool) -> int:
    logger.debug("interactive session started")
    while True:
        try:
            line = input(PROMPT)
        except EOFError:
            print()
            break
        if not line:
            break

        # Errors on one line do not affect the next.
        result = cox.run(line, check=check, print_ast=print_ast)
        if result.had_runtime_error:
            report_runtime_error(result.runtime_error)
        elif result.source is not None:
            print(result.source, end="")

    logger.debug("interactive session ended")
    return EXIT_OK


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(prog="cox", add_help=True,
                                     description="Run a Cox script, or start a prompt without one.")
    parser.add_argument("--check", action="store_true",
                        help="Scan, parse and resolve only; do not execute.")
    parser.add_argument("--print-ast", action="store_true",
                        help="Print the parsed program as source instead of running it.")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log pipeline details to stderr.")
    parser.add_argument("scripts", nargs="*", metavar="script", help="Cox source file")
    args = parser.parse_args(argv)

    if len(args.scripts) > 1:
        parser.print_usage(sys.stderr)
        sys.exit(EXIT_USAGE)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    cox = Cox(on_error=report_static_error)

    if args.scripts:
        sys.exit(run_file(cox, args.scripts[0], args.check, args.print_ast))
    sys.exit(run_prompt(cox, args.check, args.print_ast))


if __name__ == "__main__":
    main()
