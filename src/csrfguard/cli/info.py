# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""'csrfguard info' — show the resolved CSRF configuration."""

from __future__ import annotations

import click
from rich.table import Table

from csrfguard.cli.console import console
from csrfguard.config.properties import CsrfProperties
from csrfguard.core.config import Config
from csrfguard.kernel.exceptions import ConfigurationException


@click.command()
@click.option("--config-dir", default=".", show_default=True, type=click.Path(file_okay=False), help="Directory holding csrfguard.yaml.")
@click.option("--profile", "profiles", multiple=True, help="Active profile (repeatable).")
def info_command(config_dir: str, profiles: tuple[str, ...]) -> None:
    """Show the effective CSRF settings and where they came from."""
    try:
        config = Config.from_sources(config_dir, active_profiles=list(profiles))
        props = config.bind(CsrfProperties)
    except ConfigurationException as exc:
        console.print(f"[error]{exc}[/error]")
        raise SystemExit(1) from None

    environment = str(config.get("csrfguard.environment", "development"))

    table = Table(title="[brand]CSRF settings[/brand]", border_style="dim")
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    table.add_row("environment", environment)
    table.add_row("cookie", props.cookie_name)
    table.add_row("header", props.header_name)
    table.add_row("form field", props.form_field)
    table.add_row("ttl (s)", str(props.ttl))
    table.add_row("secure", str(props.resolve_secure(environment)))
    table.add_row("same-site", props.same_site)
    table.add_row("store", props.store)
    table.add_row("endpoint", props.endpoint_path)
    console.print(table)

    for source in config.loaded_sources:
        console.print(f"  [dim]• {source}[/dim]")
