"""launchprep CLI: prepare chains for a coordinated network launch."""

import argparse
import logging
import sys
import traceback
from importlib.metadata import version as get_version, PackageNotFoundError
from pathlib import Path


def _configure_logging(level: str, quiet: bool) -> None:
    logging.basicConfig(
        level=logging.WARNING if quiet else level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main():
    """Main CLI entry point for launchprep commands."""
    try:
        launchprep_version = get_version("launchprep")
    except PackageNotFoundError:
        launchprep_version = "dev"

    parser = argparse.ArgumentParser(
        prog="launchprep",
        description="launchprep: reproducible genesis and binary preparation for chain launches"
    )
    parser.add_argument("--version", action="version", version=f"launchprep {launchprep_version}")
    # Common arguments
    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress all non-error output."
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # prepare command
    prepare_parser = subparsers.add_parser(
        "prepare",
        help="Fetch, build and prepare a launch's chain from its genesis information",
        parents=[parent_parser]
    )
    prepare_parser.add_argument(
        "--launch",
        type=Path,
        required=True,
        help="Path to the chain launch JSON"
    )
    prepare_parser.add_argument(
        "--genesis-info",
        dest="genesis_info",
        type=Path,
        required=True,
        help="Path to the approved genesis information JSON"
    )
    prepare_parser.add_argument(
        "--home",
        type=Path,
        default=None,
        help="Chain home directory (defaults to $LAUNCHPREP_HOME/spn/<launch id>)"
    )

    # revert-launch command
    revert_parser = subparsers.add_parser(
        "revert-launch",
        help="Reset the genesis time of a prepared chain",
        parents=[parent_parser]
    )
    revert_parser.add_argument(
        "--launch",
        type=Path,
        required=True,
        help="Path to the chain launch JSON"
    )
    revert_parser.add_argument(
        "--home",
        type=Path,
        default=None,
        help="Chain home directory"
    )

    # fetch command
    fetch_parser = subparsers.add_parser(
        "fetch",
        help="Fetch a chain source and print its local path and resolved hash",
        parents=[parent_parser]
    )
    fetch_parser.add_argument("url", help="Remote repository URL")
    fetch_group = fetch_parser.add_mutually_exclusive_group()
    fetch_group.add_argument("--ref", default=None, help="Branch or tag to fetch")
    fetch_group.add_argument("--hash", default=None, help="Exact commit to check out")

    # verify-source command
    verify_parser = subparsers.add_parser(
        "verify-source",
        help="Check a local chain source tree",
        parents=[parent_parser]
    )
    verify_parser.add_argument("path", type=Path, help="Chain source directory")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    # Lazy imports: only load the pipeline when a command runs
    from launchprep.config import get_settings
    from launchprep.errors import PreparationError

    try:
        settings = get_settings()
        _configure_logging(settings.log_level, args.quiet)

        if args.command == "prepare":
            from launchprep.api import prepare_launch
            from launchprep.contracts import load_chain_launch
            from launchprep.kernel.contributions import load_genesis_information

            launch = load_chain_launch(args.launch)
            info = load_genesis_information(args.genesis_info)
            prepared = prepare_launch(launch, info, home=args.home, settings=settings)
            if not args.quiet:
                print("[OK] Chain is prepared for launch")
                print(f"  Home: {prepared.home}")
                print(f"  Source: {prepared.source_hash}")
                print("\nYou can start your node by running the following command:")
                print(f"\t{prepared.start_command()}")

        elif args.command == "revert-launch":
            from launchprep.api import revert_launch
            from launchprep.contracts import load_chain_launch

            launch = load_chain_launch(args.launch)
            genesis_path = revert_launch(launch, home=args.home, settings=settings)
            if not args.quiet:
                print(f"[OK] Genesis time reset: {genesis_path}")

        elif args.command == "fetch":
            from launchprep.api import fetch

            fetched = fetch(args.url, ref=args.ref, hash=args.hash)
            print(f"{fetched.path} {fetched.hash}")

        elif args.command == "verify-source":
            from launchprep.api import inspect_source

            report = inspect_source(args.path)
            if not args.quiet:
                print("[OK] Chain source is valid")
                print(f"  App file: {report.app_file}")
                print(f"  Binary: {report.binary_name}")
                print(f"  Address prefix: {report.address_prefix}")

        sys.exit(0)
    except PreparationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
