#!/usr/bin/env python3
"""
CLI for the Intrear evaluator.

Usage:
    python -m intrear check FILE
    python -m intrear run FILE [--check] [--config FILE] [--show NAME ...]

FILE is a YAML or JSON program document (see ``intrear.loader``).

Examples:
    # Type check without running
    python -m intrear check examples/fizzbuzz.yaml

    # Check, run, then print two top-level bindings
    python -m intrear run examples/fizzbuzz.yaml --check --show count --show names
"""

import argparse
import sys

from .values import to_text


def _load(path):
    from .loader import load_program
    try:
        return load_program(path)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
    except ValueError as e:
        print(f"Error: invalid program: {e}", file=sys.stderr)
    return None


def _report(result, name) -> int:
    if result.has_errors:
        print(f"Type checking failed with {len(result.diagnostics)} error(s):")
        for diag in result.diagnostics:
            print(diag.format())
        return 1
    print(f"OK: {name} - {len(result.node_types)} top-level node(s), no errors")
    return 0


def cmd_check(args):
    """Type check a program without running it."""
    from .interpreter import check

    nodes = _load(args.file)
    if nodes is None:
        return 1
    return _report(check(nodes, max_errors=args.max_errors), args.file)


def cmd_run(args):
    """Execute a program and optionally show top-level bindings."""
    from .config import InterpreterConfig, load_config
    from .errors import IntrearError
    from .interpreter import Interpreter, check

    try:
        config = load_config(args.config) if args.config else InterpreterConfig()
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if args.log_level is None:
        from .log import configure
        configure(level=config.log_level)

    nodes = _load(args.file)
    if nodes is None:
        return 1

    if args.check:
        result = check(nodes, max_errors=config.max_errors)
        if result.has_errors:
            return _report(result, args.file)

    try:
        context = Interpreter(nodes, config=config).execute()
    except IntrearError as e:
        print(f"Error[{e.code}]: {e.message}", file=sys.stderr)
        return 1

    for name in args.show or []:
        if not context.contains(name):
            print(f"{name}: <unbound>")
            continue
        print(f"{name} = {to_text(context.lookup(name))}")
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog='python -m intrear',
        description='Intrear tree-walking evaluator',
    )
    parser.add_argument('--log-level', metavar='LEVEL',
                        help='Logging level for the intrear logger (e.g. DEBUG)')
    parser.add_argument('--log-config', metavar='FILE',
                        help='YAML logging dictConfig file')

    subparsers = parser.add_subparsers(dest='action', required=True)

    # check command
    check_parser = subparsers.add_parser('check', help='Type check a program')
    check_parser.add_argument('file', help='Program document (YAML or JSON)')
    check_parser.add_argument('--max-errors', type=int, default=20,
                              help='Stop after this many errors')

    # run command
    run_parser = subparsers.add_parser('run', help='Execute a program')
    run_parser.add_argument('file', help='Program document (YAML or JSON)')
    run_parser.add_argument('--check', action='store_true',
                            help='Type check before running; abort on errors')
    run_parser.add_argument('-c', '--config', metavar='FILE',
                            help='Interpreter configuration (YAML)')
    run_parser.add_argument('-s', '--show', action='append', metavar='NAME',
                            help='Print a top-level binding after the run (can be repeated)')

    args = parser.parse_args(argv)

    from .log import configure
    configure(path=args.log_config, level=args.log_level)

    if args.action == 'check':
        return cmd_check(args)
    elif args.action == 'run':
        return cmd_run(args)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
