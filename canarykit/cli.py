"""CLI entry point for inspecting canary release records."""

import json
import logging
import sys

import click

from canarykit import hooks, resolve
from canarykit.loader import ReleaseValidationError, load_release
from canarykit.models import Phase
from canarykit.serializer import effective_to_dict, release_to_json, release_to_yaml

PHASE_CHOICE = click.Choice([p.value for p in Phase])


def _load_or_exit(path):
    try:
        return load_release(path)
    except ReleaseValidationError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log resolution fallbacks at DEBUG level.")
def main(verbose):
    """Canary release toolkit -- resolve effective settings and webhook lifecycles."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command("resolve")
@click.option(
    "--release",
    "release_path",
    required=True,
    type=click.Path(exists=True),
    help="Path to a canary release record (YAML or JSON).",
)
@click.option(
    "--out",
    default=None,
    type=click.Path(),
    help="Optional output path for the effective values (JSON). Prints to stdout if omitted.",
)
def resolve_cmd(release_path, out):
    """Print the effective values a controller would use for a release."""
    release = _load_or_exit(release_path)
    output = json.dumps(effective_to_dict(release), indent=2)

    if out:
        with open(out, "w") as f:
            f.write(output + "\n")
        click.echo(f"Effective values written to {out}")
    else:
        click.echo(output)


@main.command("hooks")
@click.option(
    "--release",
    "release_path",
    required=True,
    type=click.Path(exists=True),
    help="Path to a canary release record (YAML or JSON).",
)
@click.option("--phase", required=True, type=PHASE_CHOICE, help="Release phase to dispatch.")
def hooks_cmd(release_path, phase):
    """List the webhooks eligible to fire in a release phase."""
    release = _load_or_exit(release_path)
    policy = resolve.analysis_policy(release.spec)

    selected = hooks.webhooks_for(policy, Phase(phase))
    if not selected:
        click.echo(f"No webhooks eligible in phase {phase}")
        return

    for webhook in selected:
        rule = hooks.rule_for(hooks.hook_type_of(webhook))
        click.echo(
            f"{webhook.name}\t{rule.hook_type.value}\t{rule.cadence.value}\t"
            f"on failure: {rule.on_failure.value}\t{webhook.url}"
        )


@main.command()
@click.option(
    "--release",
    "release_path",
    required=True,
    type=click.Path(exists=True),
    help="Path to a canary release record (YAML or JSON).",
)
@click.option("--webhook", "webhook_name", required=True, help="Name of the webhook.")
@click.option("--phase", required=True, type=PHASE_CHOICE, help="Release phase to dispatch.")
def payload(release_path, webhook_name, phase):
    """Print the payload a webhook would receive in a phase."""
    release = _load_or_exit(release_path)
    policy = resolve.analysis_policy(release.spec)

    declared = (policy.webhooks or []) if policy is not None else []
    matches = [w for w in declared if w.name == webhook_name]
    if not matches:
        click.echo(f"Error: webhook {webhook_name!r} not found", err=True)
        sys.exit(1)

    try:
        body = hooks.build_payload(release, matches[0], Phase(phase))
    except hooks.HookPhaseError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo(json.dumps(hooks.payload_to_dict(body), indent=2))


@main.command()
@click.option(
    "--release",
    "release_path",
    required=True,
    type=click.Path(exists=True),
    help="Path to a canary release record (YAML or JSON).",
)
@click.option(
    "--format",
    "fmt",
    default="yaml",
    type=click.Choice(["yaml", "json"]),
    help="Output format.",
)
def normalize(release_path, fmt):
    """Re-emit a release record with only its present fields."""
    release = _load_or_exit(release_path)
    if fmt == "json":
        click.echo(release_to_json(release))
    else:
        click.echo(release_to_yaml(release), nl=False)


if __name__ == "__main__":
    main()
