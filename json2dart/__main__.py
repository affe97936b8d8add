# File: json2dart/__main__.py
"""
Json2Dart — Module entry point.

Allows running the generator directly via::

    python -m json2dart --feature-name auth

This module simply delegates to the CLI entry point defined in ``json2dart.cli``.
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from json2dart.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
