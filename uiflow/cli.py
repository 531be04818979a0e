"""
Command line entry point.

Runs a workflow file against a real browser and prints one line per step.
"""

import json
import logging
from typing import Dict, Optional, Tuple

import click

from uiflow.browser.factory import DriverFactory
from uiflow.config import env_manager
from uiflow.errors import SessionAcquisitionFailed
from uiflow.runtime_data import StepStatus
from uiflow.session import with_session
from uiflow.workflows import EXAMPLES_DIR, WorkflowDefinition, WorkflowEngine
from uiflow.workflows.engine import GENERIC_FAILURE_EXIT_CODE, WorkflowExecutionResult
from uiflow.workflows.steps import registry

DEFAULT_WORKFLOW = EXAMPLES_DIR / "book_search_checkout.yaml"

STATUS_LABELS = {
    StepStatus.PASSED: "PASS",
    StepStatus.FAILED: "FAIL",
    StepStatus.SKIPPED: "SKIP",
}


def browser_options(f):
    """Options that map onto run configuration settings."""
    f = click.option("--base-url", help="Root URL of the site under test")(f)
    f = click.option("--implicit-wait", type=float,
                     help="Seconds each element lookup may wait")(f)
    f = click.option("--explicit-wait", type=float,
                     help="Seconds to wait for elements to become visible")(f)
    f = click.option("--browser", "-b", type=click.Choice(["chrome", "edge"]),
                     help="Browser to use")(f)
    f = click.option("--headless/--no-headless", default=None,
                     help="Run browser in headless mode")(f)
    f = click.option("--start-maximized/--no-start-maximized", default=None,
                     help="Maximize the browser window on start")(f)
    f = click.option("--screenshot-dir", type=click.Path(file_okay=False),
                     help="Save a screenshot of the first failing step here")(f)
    return f


def parse_inputs(pairs: Tuple[str, ...]) -> Dict[str, str]:
    """Turn KEY=VALUE pairs into a dict."""
    inputs = {}
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"expected KEY=VALUE, got '{pair}'", param_hint="--input")
        key, value = pair.split("=", 1)
        inputs[key.strip()] = value
    return inputs


def load_workflow(path: Optional[str]) -> WorkflowDefinition:
    """Load and validate a workflow file, exiting on errors."""
    try:
        workflow = WorkflowDefinition.from_file(path or str(DEFAULT_WORKFLOW))
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e))

    errors = workflow.validate()
    if errors:
        for error in errors:
            click.echo(f"  - {error}", err=True)
        raise click.ClickException(f"Workflow '{workflow.name}' is invalid")
    return workflow


def format_report(result: WorkflowExecutionResult) -> str:
    """Per-step lines in declared order followed by the aggregate status."""
    lines = []
    for step in result.step_results:
        label = STATUS_LABELS.get(step.status, step.status.value.upper())
        line = f"{label}  {step.ordinal:>3}  {step.step_name}"
        if step.status == StepStatus.FAILED:
            line += f"  {step.error_type}: {step.error}"
        lines.append(line)

    counts = {status: 0 for status in STATUS_LABELS}
    for step in result.step_results:
        if step.status in counts:
            counts[step.status] += 1
    lines.append(
        f"{result.workflow_id}: {result.status.value.upper()} "
        f"({counts[StepStatus.PASSED]} passed, {counts[StepStatus.FAILED]} failed, "
        f"{counts[StepStatus.SKIPPED]} skipped)"
    )
    if result.screenshot_path:
        lines.append(f"Screenshot: {result.screenshot_path}")
    return "\n".join(lines)


@click.group(help="Ordered UI workflow runner")
@click.option("--log-level", default="WARNING",
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
              help="Logging level (default: WARNING)")
def cli(log_level):
    """Run and check browser workflows."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@cli.command()
@click.argument("workflow_file", required=False, type=click.Path(dir_okay=False))
@browser_options
@click.option("--input", "-i", "input_pairs", multiple=True, metavar="KEY=VALUE",
              help="Workflow input (repeatable)")
@click.option("--report", type=click.Path(dir_okay=False),
              help="Write the run result as JSON to this file")
@click.pass_context
def run(ctx, workflow_file, base_url, implicit_wait, explicit_wait, browser, headless,
        start_maximized, screenshot_dir, input_pairs, report):
    """Run WORKFLOW_FILE (default: the bundled book search example)."""
    workflow = load_workflow(workflow_file)
    inputs = parse_inputs(input_pairs)

    try:
        env_manager.load()
        env_manager.update_settings({
            "base_url": base_url,
            "implicit_wait_seconds": implicit_wait,
            "explicit_wait_seconds": explicit_wait,
            "browser_type": browser,
            "headless": headless,
            "start_maximized": start_maximized,
            "screenshot_dir": screenshot_dir,
        })
        config = env_manager.get_run_config()
    except ValueError as e:
        raise click.ClickException(f"Invalid configuration: {e}")

    click.echo(f"Running '{workflow.name}' against {config.base_url}")
    engine = WorkflowEngine()
    try:
        result = with_session(
            config,
            lambda session: engine.run(workflow, session, inputs),
            driver_factory=DriverFactory.from_config,
        )
    except SessionAcquisitionFailed as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(GENERIC_FAILURE_EXIT_CODE)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(GENERIC_FAILURE_EXIT_CODE)

    click.echo(format_report(result))
    if report:
        with open(report, "w", encoding="utf-8") as f:
            json.dump(result.to_dict(), f, indent=2)
        click.echo(f"Report saved to {report}")
    ctx.exit(result.exit_code)


@cli.command()
@click.argument("workflow_file", type=click.Path(dir_okay=False))
def validate(workflow_file):
    """Check WORKFLOW_FILE without starting a browser."""
    workflow = load_workflow(workflow_file)
    groups = workflow.ordinal_groups()
    click.echo(
        f"Workflow '{workflow.name}' is valid: {len(workflow.steps)} steps "
        f"in {len(groups)} ordinal groups"
    )


@cli.command()
def operations():
    """List the available actions and assertions."""
    for kind in ("action", "assertion"):
        click.echo(f"{kind}s:")
        for name in registry.list_operations(kind):
            operation_class = registry.get(name)
            summary = (operation_class.__doc__ or "").strip().splitlines()
            click.echo(f"  {name:<24} {summary[0] if summary else ''}")


def main():
    cli()


if __name__ == "__main__":
    main()
