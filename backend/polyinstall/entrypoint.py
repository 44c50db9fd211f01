"""
Package-native CLI entry point for polyinstall.

Used by the installed console script.
"""

import os
import sys


def _is_debug_mode(argv: list[str]) -> bool:
    """Resolve debug mode from CLI flag or env."""
    if "--debug" in argv:
        return True
    return os.getenv("LOG_LEVEL", "").lower() == "debug"


def main() -> None:
    """Entry point for the polyinstall console script."""
    debug_mode = _is_debug_mode(sys.argv)
    from polyinstall.core.tracebacks import install_traceback_handler, print_failure_summary

    install_traceback_handler(debug=debug_mode)

    from polyinstall.cli.app import app

    try:
        app()
    except KeyboardInterrupt:
        from rich.console import Console

        Console(stderr=True).print("\n\n[dim]Interrupted by user.[/dim]")
        sys.exit(130)
    except SystemExit:
        raise
    except Exception as e:
        if debug_mode:
            raise
        print_failure_summary("main", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
