"""modpub entry point.

Publishes a mod package to the catalog repository through a fork and a
pull request. Usage: modpub [publish] --package-url URL [--config PATH].
"""

import argparse
import logging
import sys
from pathlib import Path

from modpub.config import AppConfig, load_config
from modpub.logging import ModpubLogging
from modpub.publisher import run


def _split_repo(value: str) -> tuple[str, str]:
    owner, sep, name = value.partition("/")
    if not sep or not owner or not name or "/" in name:
        raise argparse.ArgumentTypeError(f"expected owner/name, got {value!r}")
    return owner, name


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI; the ``publish`` subcommand is optional."""
    argv = list(argv if argv is not None else sys.argv[1:])
    if argv and argv[0] == "publish":
        argv = argv[1:]

    parser = argparse.ArgumentParser(
        prog="modpub",
        description="Publish a mod package to the catalog via fork, branch and pull request",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=Path("config.yaml"),
        help="Path to YAML config file",
    )
    parser.add_argument("--package-url", help="URL of the mod package (overrides config)")
    parser.add_argument("--catalog", type=_split_repo, help="Catalog repository as owner/name")
    parser.add_argument("--fork", type=_split_repo, help="Fork coordinates as owner/name")
    parser.add_argument("--source", help="Publishing repository as owner/name")
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only load and validate config, then exit",
    )
    return parser.parse_args(argv)


def apply_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Apply CLI flags on top of the loaded config."""
    if args.package_url:
        config.package_url = args.package_url
    if args.catalog:
        config.catalog.owner, config.catalog.name = args.catalog
    if args.fork:
        config.catalog.fork_owner, config.catalog.fork_name = args.fork
    if args.source:
        config.source.repository = args.source
    return config


def main(argv: list[str] | None = None) -> int:
    """Entry point: load config, set up logging, run one publish."""
    args = parse_args(argv)

    config_path = args.config
    if not config_path.is_file() and config_path == Path("config.yaml"):
        if Path("config.example.yaml").is_file():
            config_path = Path("config.example.yaml")
            logging.basicConfig(level=logging.INFO)
            logging.getLogger("modpub").warning("config.yaml not found, using config.example.yaml")

    config = apply_overrides(load_config(config_path), args)
    ModpubLogging(config.logging).setup()

    if args.check:
        print("Config OK:", config.catalog.full_name, config.package_url or "<no package url>")
        return 0

    try:
        result = run(config)
    except KeyboardInterrupt:
        return 130
    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
