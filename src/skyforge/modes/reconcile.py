import argparse
import json
from typing import Any

from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from ..config import Settings
from ..loader import load_spec_file
from ..provider import DataprocProvider
from ..resource import Action, ClusterResource, Plan
from ..schemas.cluster import ClusterSpec
from ..state import FileStateStore

ACTION_STYLES = {
    Action.CREATE: "green",
    Action.REPLACE: "bold red",
    Action.UPDATE: "yellow",
    Action.NOOP: "dim",
}


def build_resource(args: argparse.Namespace, settings: Settings) -> ClusterResource:
    """Wires the provider, state store and settings for one CLI run."""
    store = FileStateStore(args.state_dir or settings.state_dir)
    return ClusterResource(DataprocProvider(), store, settings=settings)


def _plan_dict(plan: Plan) -> dict[str, Any]:
    return {
        "action": plan.action.value,
        "cluster": plan.key,
        "replace": plan.replace_paths,
        "update_mask": plan.patch.update_mask if plan.patch else [],
    }


def _print_plan(plan: Plan, console: Console) -> None:
    table = Table(title=f"Plan for {plan.key}")
    table.add_column("Action", style=ACTION_STYLES[plan.action])
    table.add_column("Attribute", style="cyan")

    if plan.action is Action.REPLACE:
        for path in plan.replace_paths:
            table.add_row(plan.action.value, path)
    elif plan.action is Action.UPDATE and plan.patch is not None:
        for path in plan.patch.update_mask:
            table.add_row(plan.action.value, path)
    else:
        table.add_row(plan.action.value, "-")

    console.print(table)


def _print_cluster(
    live: ClusterSpec | None, args: argparse.Namespace, out: Console
) -> None:
    if live is None:
        out.print("[yellow]Cluster does not exist.[/yellow]")
        return
    data = live.model_dump(mode="json", exclude_none=True)
    if args.json:
        print(json.dumps(data, indent=2))
    else:
        out.print_json(data=data)


def run_plan(
    args: argparse.Namespace,
    resource: ClusterResource,
    log_console: Console,
    out_console: Console,
) -> Plan:
    spec = load_spec_file(args.file)
    log_console.print(f"Refreshing state of [bold cyan]{spec.name}[/bold cyan]...")
    plan = resource.plan(spec)
    if args.json:
        print(json.dumps(_plan_dict(plan), indent=2))
    else:
        _print_plan(plan, out_console)
    return plan


def run_apply(
    args: argparse.Namespace,
    resource: ClusterResource,
    log_console: Console,
    out_console: Console,
) -> None:
    spec = load_spec_file(args.file)
    plan = run_plan(args, resource, log_console, out_console)

    if plan.action is Action.NOOP:
        log_console.print(
            "[green]No changes. Cluster matches the desired state.[/green]"
        )
        resource.apply(spec, plan=plan)
        return

    if not args.yes and not Confirm.ask(f"Perform {plan.action.value} on {plan.key}?"):
        log_console.print("[yellow]Aborted.[/yellow]")
        return

    live = resource.apply(spec, timeout_minutes=args.timeout, plan=plan)
    log_console.print(f"[bold green]Apply complete:[/bold green] {plan.key}")
    _print_cluster(live, args, out_console)


def run_show(
    args: argparse.Namespace,
    resource: ClusterResource,
    _log_console: Console,
    out_console: Console,
) -> None:
    spec = load_spec_file(args.file)
    _print_cluster(resource.read(spec), args, out_console)


def run_destroy(
    args: argparse.Namespace,
    resource: ClusterResource,
    log_console: Console,
    _out_console: Console,
) -> None:
    spec = resource.resolve(load_spec_file(args.file))
    if not args.yes and not Confirm.ask(f"Destroy Dataproc cluster {spec.key}?"):
        log_console.print("[yellow]Aborted.[/yellow]")
        return

    resource.delete(spec, timeout_minutes=args.timeout)
    log_console.print(f"[bold green]Destroyed:[/bold green] {spec.key}")


COMMANDS = {
    "plan": run_plan,
    "apply": run_apply,
    "show": run_show,
    "destroy": run_destroy,
}
