import argparse
from importlib.metadata import version

from rich.console import Console

from .config import Settings
from .errors import SkyforgeError
from .logger import logger, set_log_level
from .modes import reconcile


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Skyforge: declarative Dataproc cluster reconciler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show what would change
  skyforge plan -f cluster.yaml

  # Create, update or recreate the cluster to match the file
  skyforge apply -f cluster.yaml --yes

  # Print the live cluster as JSON
  skyforge show -f cluster.yaml --json

  # Delete the cluster (and its autogenerated bucket if requested)
  skyforge destroy -f cluster.yaml --timeout 15
""",
    )
    try:
        ver = version("skyforge")
    except Exception:
        ver = "unknown"
    parser.add_argument("--version", action="version", version=f"Skyforge v{ver}")

    parser.add_argument(
        "command", choices=sorted(reconcile.COMMANDS), help="Action to perform"
    )
    parser.add_argument(
        "-f", "--file", required=True, help="Desired-state YAML file of the cluster"
    )
    parser.add_argument(
        "--state-dir", help="Directory holding recorded state (SKYFORGE_STATE_DIR)"
    )
    parser.add_argument(
        "--project", help="Project used when the file names none (GOOGLE_CLOUD_PROJECT)"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Minutes to wait on the operation (default: create 10, others 5)",
    )
    parser.add_argument("--json", action="store_true", help="Output results as JSON")
    parser.add_argument(
        "-y", "--yes", action="store_true", help="Do not ask for confirmation"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log progress at INFO level"
    )
    return parser


def run(args: argparse.Namespace) -> int:
    try:
        settings = Settings.from_env()
    except SkyforgeError as e:
        logger.error(f"{args.command.capitalize()} failed: {e}")
        return 1
    if args.project:
        settings = settings.model_copy(update={"project": args.project})
    set_log_level("INFO" if args.verbose else settings.log_level)

    # Use stderr for logs/progress if stdout is piped for JSON
    log_console = Console(stderr=True, quiet=args.json)
    out_console = Console(quiet=args.json)

    handler = reconcile.COMMANDS[args.command]
    try:
        resource = reconcile.build_resource(args, settings)
        handler(args, resource, log_console, out_console)
    except SkyforgeError as e:
        logger.error(f"{args.command.capitalize()} failed: {e}")
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return run(args)
    except KeyboardInterrupt:
        console = Console(stderr=True)
        console.print("\n[bold red]Operation cancelled by user.[/bold red]")
        return 130


if __name__ == "__main__":
    exit(main())
