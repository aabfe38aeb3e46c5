"""
Command line interface for the ToyC compiler.

Author: xwest
"""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .config import CompilerOptions
from .driver import Driver
from .errors import CompilerError


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="toyc",
        description="Compile ToyC source into a native object file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    toyc program.toy                      # Compile to output.o
    toyc program.toy -o program.o         # Choose the object file name
    toyc program.toy --emit-llvm out.ll   # Also dump the textual IR
    toyc                                  # Read from stdin (prompts on a terminal)
        """
    )

    parser.add_argument('source', nargs='?',
                        help='Source file to compile (default: standard input)')

    # Output options
    parser.add_argument('-o', '--output', default='output.o',
                        help='Object file to write (default: output.o)')
    parser.add_argument('--emit-llvm', metavar='PATH',
                        help='Also write the textual LLVM IR of the module to PATH')
    parser.add_argument('--target', metavar='TRIPLE',
                        help='Target triple to generate code for (default: host)')

    # Reporting options
    parser.add_argument('--no-eval', action='store_true',
                        help='Do not JIT-evaluate top-level expressions')
    parser.add_argument('--quiet-ir', action='store_true',
                        help='Do not print the IR of each compiled unit')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable debug logging')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    return parser


def options_from_args(args: argparse.Namespace, interactive: bool = False) -> CompilerOptions:
    """Translate parsed command line arguments into CompilerOptions."""
    return CompilerOptions(
        output_path=args.output,
        target_triple=args.target,
        evaluate=not args.no_eval,
        print_ir=not args.quiet_ir,
        emit_llvm=args.emit_llvm,
        interactive=interactive,
        filename=args.source or "<stdin>"
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the toyc command"""
    args = build_arg_parser().parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    interactive = args.source is None and sys.stdin.isatty()
    options = options_from_args(args, interactive=interactive)

    try:
        driver = Driver(options=options)
    except CompilerError as e:
        sys.stderr.write(str(e.diagnostic))
        return 1

    try:
        if args.source is None:
            return driver.run(sys.stdin)
        with open(args.source, "r", encoding="utf-8") as f:
            return driver.run(f)
    except OSError as e:
        print(f"toyc: cannot read '{args.source}': {e.strerror}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
