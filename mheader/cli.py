# SPDX-License-Identifier: MIT
"""Command-line interface for mheader."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from mheader.configure.config import GeneratorConfig, parse_replacements
from mheader.core.errors import MheaderError
from mheader.core.loader import load_projects
from mheader.core.project import is_emitted
from mheader.generators.malterlib import MalterlibGenerator, target_name

# Set up logging
logger = logging.getLogger("mheader")

COMMANDS = ("generate", "info")


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Configure logging based on verbosity level."""
    if debug:
        level = logging.DEBUG
        fmt = "%(levelname)s: %(name)s: %(message)s"
    elif verbose:
        level = logging.INFO
        fmt = "%(levelname)s: %(message)s"
    else:
        level = logging.WARNING
        fmt = "%(levelname)s: %(message)s"

    logging.basicConfig(level=level, format=fmt)


def build_config(args: argparse.Namespace) -> GeneratorConfig:
    """Assemble the generator configuration.

    Sources, later ones winning: the --config file, MALTERLIB_*
    environment variables, command-line flags.

    Raises:
        ConfigError: If any of the sources is invalid.
    """
    config = GeneratorConfig()
    if args.config:
        config = GeneratorConfig.load(args.config)
    config = GeneratorConfig.from_environ(base=config)

    if args.hide_prefix:
        config.hide_prefixes = list(args.hide_prefix)
    if args.replace_prefix:
        config.replace_prefixes = parse_replacements(";".join(args.replace_prefix))
    if args.transient_dir:
        config.transient_root = args.transient_dir
    if args.single_command:
        config.allow_multiple_commands = False
    if args.no_placeholders:
        config.create_placeholders = False
    return config


def cmd_generate(args: argparse.Namespace) -> int:
    """Generate Malterlib headers for every project in a build graph."""
    setup_logging(args.verbose, args.debug)

    output_dir = Path(args.build_dir) if args.build_dir else None
    try:
        config = build_config(args)
        projects = load_projects(args.graph)
        generator = MalterlibGenerator(config)
        headers = generator.generate_all(projects, output_dir)
    except MheaderError as e:
        logger.error("%s", e)
        return 1

    for header in headers:
        logger.info("Generated %s", header)
    return 0


def cmd_info(args: argparse.Namespace) -> int:
    """Show the projects and targets of a build graph."""
    setup_logging(args.verbose, args.debug)

    try:
        projects = load_projects(args.graph)
    except MheaderError as e:
        logger.error("%s", e)
        return 1

    for project in projects:
        print(f"Project: {project.name}")
        print(f"  Source dir: {project.source_dir}")
        print(f"  Binary dir: {project.binary_dir}")
        print(f"  Configurations: {', '.join(project.configurations)}")
        for target in project.targets:
            if is_emitted(target):
                label = target_name(target)
            else:
                label = f"{target.name} (not emitted)"
            print(
                f"  {label}: {target.target_type.value}, "
                f"{len(target.sources)} sources"
            )
    return 0


def add_common_args(parser: argparse.ArgumentParser) -> None:
    """Add common arguments to a parser."""
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--debug", action="store_true", help="Debug output")
    parser.add_argument("graph", help="Build graph description (JSON)")


def add_generate_args(parser: argparse.ArgumentParser) -> None:
    """Add arguments for the generate command."""
    parser.add_argument(
        "-B",
        "--build-dir",
        help="Output directory (default: each project's binary directory)",
    )
    parser.add_argument("--config", metavar="FILE", help="JSON configuration file")
    parser.add_argument(
        "--hide-prefix",
        action="append",
        metavar="PREFIX",
        help="Hide a path prefix in file groups (repeatable)",
    )
    parser.add_argument(
        "--replace-prefix",
        action="append",
        metavar="OLD=NEW",
        help="Replace a path prefix in file groups (repeatable)",
    )
    parser.add_argument(
        "--transient-dir",
        metavar="DIR",
        help="Directory custom step outputs are produced in",
    )
    parser.add_argument(
        "--single-command",
        action="store_true",
        help="Reject custom steps with more than one command line",
    )
    parser.add_argument(
        "--no-placeholders",
        action="store_true",
        help="Do not create missing custom step sources",
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the mheader CLI."""
    parser = argparse.ArgumentParser(
        prog="mheader",
        description="Generate Malterlib header files from a build graph.",
        epilog="Run 'mheader <command> --help' for command-specific help.",
    )
    from mheader import __version__

    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # mheader generate
    gen_parser = subparsers.add_parser(
        "generate", help="Generate Malterlib headers (default command)"
    )
    add_common_args(gen_parser)
    add_generate_args(gen_parser)
    gen_parser.set_defaults(func=cmd_generate)

    # mheader info
    info_parser = subparsers.add_parser(
        "info", help="Show projects and targets of a build graph"
    )
    add_common_args(info_parser)
    info_parser.set_defaults(func=cmd_info)

    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv:
        parser.print_help()
        return 1

    # Default command: generate
    if argv[0] not in COMMANDS and argv[0] not in ("-h", "--help", "--version"):
        argv.insert(0, "generate")

    args = parser.parse_args(argv)

    # Run the specified command
    result: int = args.func(args)
    return result


if __name__ == "__main__":
    sys.exit(main())
