import sys
import argparse
from pathlib import Path

from .config import Settings
from .errors import ParseError
from .host import ConsoleHost
from .log import configure_logging
from .runtime import Interpreter


def main(argv=None):
    parser = argparse.ArgumentParser(prog="domscript", description="Run the directive elements embedded in a markup document")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Run a markup file")
    run_parser.add_argument("file", help="Path of the markup file (e.g. page.html)")
    run_parser.add_argument("--dump", action="store_true", help="Print the resulting document when done")
    run_parser.add_argument("--auto-approve", action="store_true", help="Answer every confirm() with yes")
    run_parser.add_argument("--max-loop", type=int, default=None, help="Iteration budget per loop (0 for unbounded)")
    run_parser.add_argument("--log-level", default=None, help="loguru level, e.g. DEBUG or WARNING")

    args = parser.parse_args(argv)

    if args.command != "run":
        parser.print_help()
        return 0

    overrides = {}
    if args.auto_approve:
        overrides["auto_approve"] = True
    if args.max_loop is not None:
        overrides["max_loop_iterations"] = args.max_loop
    if args.log_level:
        overrides["log_level"] = args.log_level
    settings = Settings.from_env(**overrides)
    configure_logging(settings.log_level)

    path = Path(args.file)
    if not path.is_file():
        print(f"Error: Could not find markup file '{args.file}'")
        sys.exit(1)

    print(f"[CLI] Running: {path}")
    interp = Interpreter(host=ConsoleHost(auto_approve=settings.auto_approve), settings=settings)
    try:
        interp.load(path)
    except ParseError as e:
        print(f"[Error] {e}")
        sys.exit(1)
    interp.start()
    if args.dump:
        print(interp.document.serialize())
    return 0


if __name__ == "__main__":
    main()
