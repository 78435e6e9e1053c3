"""Entry point for the bt CLI.

Usage:
    python -m bt

Or via installed entry point:
    bt <command>
"""

from bt.interfaces.cli import app


def main() -> None:
    """Run the bt CLI application."""
    app()


if __name__ == "__main__":
    main()
