"""CLI entry point for workbench."""

import sys


def main() -> int:
    """Main entry point for the workbench CLI."""
    from workbench.cli.main import run_cli

    return run_cli(sys.argv[1:])


if __name__ == "__main__":
    sys.exit(main())
