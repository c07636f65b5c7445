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
"""'csrfguard run' — serve the CSRF-protected app with uvicorn."""

from __future__ import annotations

import os

import click

from csrfguard.cli.console import console
from csrfguard.core.config import Config
from csrfguard.web.adapters.starlette.app import CONFIG_DIR_ENV, PROFILES_ENV

_APP_FACTORY = "csrfguard.web.adapters.starlette.app:create_app_from_environment"


@click.command()
@click.option("--host", default=None, help="Bind address (default: csrfguard.server.host).")
@click.option("--port", default=None, type=int, help="Port number (default: csrfguard.server.port).")
@click.option("--reload", "use_reload", is_flag=True, help="Enable auto-reload for development.")
@click.option("--config-dir", default=".", show_default=True, type=click.Path(file_okay=False), help="Directory holding csrfguard.yaml.")
@click.option("--profile", "profiles", multiple=True, help="Active profile (repeatable).")
def run_command(
    host: str | None,
    port: int | None,
    use_reload: bool,
    config_dir: str,
    profiles: tuple[str, ...],
) -> None:
    """Start the application server."""
    import uvicorn

    config = Config.from_sources(config_dir, active_profiles=list(profiles))
    host = host or str(config.get("csrfguard.server.host", "127.0.0.1"))
    port = port or int(config.get("csrfguard.server.port", 8080))

    # Read back by create_app_from_environment.
    os.environ[CONFIG_DIR_ENV] = os.path.abspath(config_dir)
    os.environ[PROFILES_ENV] = ",".join(profiles)

    console.print(f"[info]Serving on http://{host}:{port}[/info]")
    uvicorn.run(_APP_FACTORY, factory=True, host=host, port=port, reload=use_reload, log_level="warning")
