"""CLI entry point: `aimanager mcp ...` and `aimanager skill ...`."""

from __future__ import annotations

import json
import logging
import sys

import click
from rich.console import Console
from rich.markup import escape

from .core.config import ClientKind, Config, MutationAction, load_config
from .core.errors import CommandError, InternalError, ValidationError
from .mcp import McpMutationService, list_mcp_servers
from .skills import GitHubSkillRepository, SkillMutationService, list_skills

console = Console()

EXIT_VALIDATION = 1
EXIT_INTERNAL = 2


# ── Shared helpers ──────────────────────────────────────────────────


def _parse_payload(raw: str | None) -> dict:
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError(f"invalid --payload JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError("--payload must be a JSON object")
    return data


def _report_error(config: Config, error: CommandError) -> None:
    console.print(f"error: {escape(error.message)}", style="bold", soft_wrap=True)
    if isinstance(error, InternalError) and error.rollback_succeeded is False:
        console.print(
            "rollback failed: the target file may be left in a corrupted state", style="bold red"
        )
    if config.verbose and isinstance(error, InternalError):
        console.print_exception()
    sys.exit(EXIT_VALIDATION if isinstance(error, ValidationError) else EXIT_INTERNAL)


def _run(ctx: click.Context, fn, *args) -> None:
    config: Config = ctx.obj
    try:
        result = fn(*args)
    except CommandError as e:
        _report_error(config, e)
        return
    console.print(escape(result.message), soft_wrap=True)
    if config.verbose:
        console.print(f"[dim]source: {escape(str(result.source_path))}[/dim]", soft_wrap=True)


def _client(value: str) -> ClientKind:
    try:
        return ClientKind.parse(value)
    except ValidationError as e:
        raise click.BadParameter(e.message) from e


CLIENT_CHOICES = click.Choice([c.value for c in ClientKind])


# ── Root ────────────────────────────────────────────────────────────


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def cli(ctx: click.Context, verbose: bool):
    """aimanager: manage MCP servers and skills for local AI coding clients."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if ctx.obj is None:
        ctx.obj = load_config(verbose=verbose)
    else:
        ctx.obj.verbose = verbose


# ── MCP ─────────────────────────────────────────────────────────────


@cli.group()
def mcp():
    """Add, update, remove or list MCP servers."""


def _mcp_command(action: MutationAction):
    @click.argument("client", type=CLIENT_CHOICES)
    @click.argument("target_id")
    @click.option("--payload", "payload_json", default=None, help="Raw JSON payload")
    @click.option("--source-path", default=None, help="Config file to edit")
    @click.option("--command", "command", default=None, help="stdio command")
    @click.option("--arg", "args", multiple=True, help="stdio argument (repeatable)")
    @click.option("--url", default=None, help="SSE endpoint (http/https)")
    @click.option("--enabled/--disabled", default=None, help="Entry toggle state")
    @click.pass_context
    def command_fn(ctx, client, target_id, payload_json, source_path, command, args, url, enabled):
        try:
            payload = _parse_payload(payload_json)
        except ValidationError as e:
            _report_error(ctx.obj, e)
            return
        if command or url:
            transport: dict = {}
            if command:
                transport["command"] = command
                transport["args"] = list(args)
            if url:
                transport["url"] = url
            payload["transport"] = transport
        if source_path:
            payload["source_path"] = source_path
        if enabled is not None:
            payload["enabled"] = enabled

        service = McpMutationService(ctx.obj)
        _run(ctx, service.mutate, _client(client), action, target_id, payload or None)

    command_fn.__doc__ = f"{action.value.capitalize()} MCP server TARGET_ID for CLIENT."
    return command_fn


for _action in MutationAction:
    mcp.command(_action.value)(_mcp_command(_action))


@mcp.command("list")
@click.option("--client", "client", type=CLIENT_CHOICES, default=None)
@click.option("--enabled/--disabled", default=None, help="Filter by toggle state")
@click.pass_context
def mcp_list(ctx, client, enabled):
    """List configured MCP servers."""
    result = list_mcp_servers(ctx.obj, _client(client) if client else None, enabled)
    for warning in result.warnings:
        console.print(f"warning: {escape(warning)}", style="yellow", soft_wrap=True)
    if not result.items:
        console.print("no MCP servers configured", style="dim")
        return
    for r in result.items:
        status = "[green]on[/green]" if r.enabled else "[dim]off[/dim]"
        console.print(
            f"  [bold]{escape(r.name):<16}[/bold] {r.client.value:<12} {r.transport:<6} {status}"
            f"  {escape(r.endpoint)}  [dim]{escape(str(r.source_path))}[/dim]",
            soft_wrap=True,
        )


# ── Skills ──────────────────────────────────────────────────────────


@cli.group()
def skill():
    """Add, update, remove or list skills."""


def _skill_command(action: MutationAction):
    @click.argument("client", type=CLIENT_CHOICES)
    @click.argument("target_id")
    @click.option("--payload", "payload_json", default=None, help="Raw JSON payload")
    @click.option(
        "--manifest-file",
        type=click.Path(exists=True, dir_okay=False),
        default=None,
        help="Read the inline manifest text from this file",
    )
    @click.option("--source-path", default=None, help="Skill directory or .md file to install")
    @click.option("--github-repo-url", default=None, help="https://github.com/<owner>/<repo>")
    @click.option("--github-skill-path", default=None, help="SKILL.md path inside the repository")
    @click.option("--skills-dir", default=None, help="Skills root override")
    @click.option("--install-kind", type=click.Choice(["directory", "file"]), default=None)
    @click.pass_context
    def command_fn(
        ctx,
        client,
        target_id,
        payload_json,
        manifest_file,
        source_path,
        github_repo_url,
        github_skill_path,
        skills_dir,
        install_kind,
    ):
        try:
            payload = _parse_payload(payload_json)
        except ValidationError as e:
            _report_error(ctx.obj, e)
            return
        if manifest_file:
            with open(manifest_file, encoding="utf-8") as f:
                payload["manifest"] = f.read()
        options = {
            "source_path": source_path,
            "github_repo_url": github_repo_url,
            "github_skill_path": github_skill_path,
            "skills_dir": skills_dir,
            "install_kind": install_kind,
        }
        payload.update({k: v for k, v in options.items() if v is not None})

        service = SkillMutationService(ctx.obj)
        _run(ctx, service.mutate, _client(client), action, target_id, payload or None)

    command_fn.__doc__ = f"{action.value.capitalize()} skill TARGET_ID for CLIENT."
    return command_fn


for _action in MutationAction:
    skill.command(_action.value)(_skill_command(_action))


@skill.command("list")
@click.argument("client", type=CLIENT_CHOICES)
@click.option("--skills-dir", default=None, help="Skills root override")
@click.pass_context
def skill_list(ctx, client, skills_dir):
    """List installed skills for CLIENT."""
    result = list_skills(ctx.obj, _client(client), skills_dir)
    for warning in result.warnings:
        console.print(f"warning: {escape(warning)}", style="yellow", soft_wrap=True)
    if not result.items:
        console.print("no skills installed", style="dim")
        return
    for r in result.items:
        console.print(
            f"  [bold]{escape(r.name):<24}[/bold] {r.install_kind.value:<9}"
            f" [dim]{escape(r.description)}[/dim]",
            soft_wrap=True,
        )


@skill.command("scan")
@click.argument("repo_url")
@click.pass_context
def skill_scan(ctx, repo_url):
    """List SKILL.md candidates in a GitHub repository."""
    try:
        items = GitHubSkillRepository().scan(repo_url)
    except CommandError as e:
        _report_error(ctx.obj, e)
        return
    for item in items:
        console.print(
            f"  [bold]{escape(item.suggested_id):<24}[/bold] {escape(item.manifest_path)}"
            f"  [dim]{escape(item.summary)}[/dim]",
            soft_wrap=True,
        )


def main():
    cli()


if __name__ == "__main__":
    main()
