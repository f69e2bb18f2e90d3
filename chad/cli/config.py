# ==============================================================================
# Config Commands
# ==============================================================================
"""
Configuration commands for the session builder CLI.
"""

import json
from typing import Annotated

import typer

from chad.cli.shared import C, load_settings_or_exit, mask_dsn


def config_show(
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output configuration as JSON")
    ] = False,
) -> None:
    """Display current configuration (password masked)."""
    settings = load_settings_or_exit()
    db = settings.database
    builder = settings.builder

    if json_output:
        config = {
            "database": {
                "url": mask_dsn(db.url),
                "schema": db.schema_name,
                "connect_timeout": db.connect_timeout,
                "statement_timeout_ms": db.statement_timeout_ms,
            },
            "builder": {
                "window_minutes": builder.window_minutes,
                "namespace": builder.namespace,
                "fallback_device_tag": builder.fallback_device_tag,
                "resolver_workers": builder.resolver_workers,
                "run_on_start": builder.run_on_start,
            },
            "heartbeat": {
                "host": settings.heartbeat.host,
                "port": settings.heartbeat.port,
            },
            "log_level": settings.log_level,
        }
        print(json.dumps(config, indent=2))
        return

    print()
    print(f"{C.BOLD}Configuration{C.RESET}")
    print()

    print(f"{C.CYAN}Database{C.RESET}")
    print(f"  URL:        {C.WHITE}{mask_dsn(db.url)}{C.RESET}")
    print(f"  Schema:     {C.WHITE}{db.schema_name}{C.RESET}")
    print(f"  Timeouts:   {C.WHITE}connect {db.connect_timeout}s, statement {db.statement_timeout_ms}ms{C.RESET}")
    print()

    print(f"{C.CYAN}Builder{C.RESET}")
    print(f"  Window:     {C.WHITE}{builder.window_minutes} minutes{C.RESET}")
    print(f"  Namespace:  {C.WHITE}{builder.namespace}{C.RESET}")
    print(f"  Fallback:   {C.WHITE}{builder.fallback_device_tag}{C.RESET}")
    print(f"  Resolvers:  {C.WHITE}{builder.resolver_workers}{C.RESET}")
    print(f"  On start:   {C.WHITE}{'run' if builder.run_on_start else 'wait'}{C.RESET}")
    print()

    print(f"{C.CYAN}Heartbeat{C.RESET}")
    print(f"  Listen:     {C.WHITE}{settings.heartbeat.host}:{settings.heartbeat.port}{C.RESET}")
    print()
