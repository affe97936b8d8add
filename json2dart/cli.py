# File: json2dart/cli.py
"""
Json2Dart - Command-Line Interface
====================================

CLI built with the standard-library ``argparse`` module.

Usage examples::

    # Generate every feature of the project in the current directory
    python -m json2dart

    # One feature / one page, verbose
    python -m json2dart generate --feature-name auth --page-name login -v

    # Apps configuration (json2dart/shop_json2dart.yaml)
    python -m json2dart --root ./my_app --apps-name shop

    # Scaffold json2dart/json2dart.yaml
    python -m json2dart init

Exit codes:
    0 — success
    1 — configuration error
    2 — generation failures (some units failed)
    4 — input/argument error
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, NoReturn, Optional, Sequence

from json2dart.errors import ConfigurationError, Json2DartError

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("json2dart")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_CONFIGURATION_ERROR: int = 1
EXIT_GENERATION_ERROR: int = 2
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root json2dart logger based on verbosity level.

    Args:
        verbosity: 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    formatter: logging.Formatter = logging.Formatter(fmt, datefmt="%H:%M:%S")
    handler.setFormatter(formatter)

    root_logger: logging.Logger = logging.getLogger("json2dart")
    root_logger.setLevel(level)

    # Remove existing handlers to prevent duplication
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from json2dart import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="json2dart",
        description=(
            "Json2Dart — Flutter model & layer generator.\n\n"
            "Turns JSON request/response samples listed in "
            "json2dart/*json2dart.yaml into Equatable models, mappers, "
            "data sources, repositories and use cases."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s\n"
            "  %(prog)s generate --feature-name auth --page-name login\n"
            "  %(prog)s --apps-name shop --replace\n"
            "  %(prog)s init\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Json2Dart v{__version__}",
    )
    parser.add_argument(
        "command",
        nargs="?",
        choices=("generate", "init"),
        default="generate",
        help="'generate' (default) or 'init' to scaffold the configuration.",
    )
    parser.add_argument(
        "--root",
        type=str,
        default=".",
        metavar="DIR",
        help="Project root directory (default: current directory).",
    )

    # --- Selection ---
    select_group = parser.add_argument_group("selection")
    select_group.add_argument(
        "--apps-name",
        type=str,
        default=None,
        metavar="NAME",
        help="Use json2dart/{NAME}_json2dart.yaml and apps/{NAME}/features.",
    )
    select_group.add_argument(
        "--feature-name",
        type=str,
        default=None,
        metavar="NAME",
        help="Generate only this feature.",
    )
    select_group.add_argument(
        "--page-name",
        type=str,
        default=None,
        metavar="NAME",
        help="Generate only this page (requires --feature-name).",
    )

    # --- Project ---
    project_group = parser.add_argument_group("project")
    project_group.add_argument(
        "--project-name",
        type=str,
        default=None,
        metavar="NAME",
        help="Override project_name from morpheme.yaml.",
    )
    project_group.add_argument(
        "--morpheme-yaml",
        type=str,
        default=None,
        metavar="PATH",
        help="Path to morpheme.yaml (default: {root}/morpheme.yaml).",
    )

    # --- Behaviour overrides ---
    behaviour_group = parser.add_argument_group("behaviour")
    api_flags = behaviour_group.add_mutually_exclusive_group()
    api_flags.add_argument(
        "--api",
        dest="api",
        action="store_const",
        const=True,
        default=None,
        help="Generate data/domain layers (overrides json2dart.api).",
    )
    api_flags.add_argument(
        "--no-api",
        dest="api",
        action="store_const",
        const=False,
        help="Generate models only.",
    )
    replace_flags = behaviour_group.add_mutually_exclusive_group()
    replace_flags.add_argument(
        "--replace",
        dest="replace",
        action="store_const",
        const=True,
        default=None,
        help="Prune blocks of APIs no longer configured (overrides json2dart.replace).",
    )
    replace_flags.add_argument(
        "--no-replace",
        dest="replace",
        action="store_const",
        const=False,
        help="Keep blocks of APIs no longer configured.",
    )
    unit_test_flags = behaviour_group.add_mutually_exclusive_group()
    unit_test_flags.add_argument(
        "--unit-test",
        dest="unit_test",
        action="store_const",
        const=True,
        default=None,
        help="Generate model and mapper unit tests (overrides json2dart.unit-test).",
    )
    unit_test_flags.add_argument(
        "--no-unit-test",
        dest="unit_test",
        action="store_const",
        const=False,
        help="Skip unit test generation.",
    )

    # --- Verbosity ---
    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all log output.",
    )

    return parser


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _run_init(root: Path) -> int:
    from json2dart.loader import init_project

    try:
        created: List[Path] = init_project(root)
    except OSError as exc:
        logger.error("Cannot initialise %s: %s", root, exc)
        return EXIT_INPUT_ERROR

    for path in created:
        print(f"  ✓ created {path}")
    if not created:
        print("  json2dart is already initialised.")
    return EXIT_SUCCESS


def _run_generation(root: Path, args: argparse.Namespace) -> int:
    """
    Run the full generation pipeline.

    Returns the appropriate exit code.
    """
    from json2dart.generator import GenerationReport, Json2DartGenerator
    from json2dart.models import ProjectConfig

    config: ProjectConfig = ProjectConfig(
        root_dir=str(root),
        project_name=args.project_name or "",
        apps_name=args.apps_name,
        feature_name=args.feature_name,
        page_name=args.page_name,
        api=args.api,
        replace=args.replace,
        unit_test=args.unit_test,
    )
    morpheme_yaml: Optional[Path] = (
        Path(args.morpheme_yaml).resolve() if args.morpheme_yaml else None
    )
    generator: Json2DartGenerator = Json2DartGenerator(
        config, morpheme_yaml=morpheme_yaml
    )

    try:
        report: GenerationReport = asyncio.run(generator.run())
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return EXIT_CONFIGURATION_ERROR
    except (Json2DartError, OSError) as exc:
        logger.error("Generation aborted: %s", exc)
        return EXIT_INPUT_ERROR

    print(report.summary())
    return EXIT_SUCCESS if report.success else EXIT_GENERATION_ERROR


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Can be called from ``__main__.py`` or directly for testing.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    if args.quiet:
        verbosity: int = -1
        logging.disable(logging.CRITICAL)
    else:
        verbosity = args.verbose
    _setup_logging(verbosity)

    root: Path = Path(args.root).resolve()
    if not root.is_dir():
        logger.error("Project root is not a directory: %s", root)
        sys.exit(EXIT_INPUT_ERROR)

    logger.info("Root:    %s", root)
    logger.info("Command: %s", args.command)

    if args.command == "init":
        sys.exit(_run_init(root))

    exit_code: int = _run_generation(root, args)
    if exit_code == EXIT_SUCCESS:
        logger.info("Generation completed successfully.")
    else:
        logger.error("Generation failed with exit code %d.", exit_code)
    sys.exit(exit_code)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_CONFIGURATION_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("json2dart.cli loaded — %d public symbols.", len(__all__))
