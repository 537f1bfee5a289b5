"""CLI entry point for the lethe command."""

import asyncio
import json
import sys
from pathlib import Path

import click
from loguru import logger

from lethe.config.settings import Settings, load_settings
from lethe.core.policy_manager import ForgettingPolicyManager
from lethe.core.presets import get_preset_by_id, get_preset_summary
from lethe.utils.exceptions import ConfigurationError, PolicyValidationError
from lethe.utils.logging import configure_logging


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, debug: bool) -> None:
    """Lethe - inspect and validate forgetting policies."""
    try:
        settings = load_settings()
    except ConfigurationError as e:
        click.echo(str(e), err=True)
        sys.exit(1)
    if debug:
        settings.logging.level = "DEBUG"
    configure_logging(settings.logging)
    ctx.obj = settings


@main.command()
def presets() -> None:
    """List the available policy presets."""
    for item in get_preset_summary():
        click.echo(
            f"{item['emoji']}  {item['id']:<16} {item['name']:<16} "
            f"[{item['risk_level']}] {item['description']}"
        )


@main.command("show-preset")
@click.argument("preset_id")
def show_preset(preset_id: str) -> None:
    """Print a preset's policy body as JSON."""
    preset = get_preset_by_id(preset_id)
    if preset is None:
        click.echo(f"Unknown preset: {preset_id}", err=True)
        sys.exit(1)
    click.echo(json.dumps(preset.policy, indent=2, ensure_ascii=False))


@main.command()
@click.pass_obj
def policies(settings: Settings) -> None:
    """List the policies a manager starts with under the current settings."""
    manager = ForgettingPolicyManager.from_settings(settings.policy)
    registered = asyncio.run(manager.list_policies())
    if not registered:
        click.echo("No policies registered")
        return
    for policy in registered:
        state = "active" if policy.active else "inactive"
        click.echo(f"{policy.policy_id:<24} {policy.policy_name} ({len(policy.rules)} rules, {state})")


@main.command()
@click.argument("policy_file",type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_obj
def validate(settings: Settings, policy_file: Path) -> None:
    """Import POLICY_FILE (JSON) into an empty registry and report the result."""
    try:
        config = json.loads(policy_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        click.echo(f"Invalid JSON in {policy_file}: {e}", err=True)
        sys.exit(1)

    manager = ForgettingPolicyManager(
        seed_policies=[],
        default_delay_hours=settings.policy.default_delay_hours,
    )

    async def _import() -> dict:
        policy_id = await manager.import_policy(config)
        return await manager.export_policy(policy_id)

    try:
        exported = asyncio.run(_import())
    except PolicyValidationError as e:
        logger.debug(f"Validation failed for {policy_file}")
        click.echo(f"Invalid policy: {e}", err=True)
        sys.exit(1)

    click.echo(
        f"OK: '{exported['policy_name']}' with {len(exported['rules'])} rule(s), "
        f"active={exported['active']}"
    )


if __name__ == "__main__":
    main()
