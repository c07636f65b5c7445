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
"""csrfguard CLI — run the protected app and inspect CSRF settings."""

from __future__ import annotations

import click

from csrfguard.cli.console import print_banner


class CsrfGuardCLI(click.Group):
    """Click group that shows the banner on help."""

    def format_help(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        print_banner()
        super().format_help(ctx, formatter)


@click.group(cls=CsrfGuardCLI)
@click.version_option(package_name="csrfguard")
def cli() -> None:
    """csrfguard — CSRF token issuance and verification."""


from csrfguard.cli.info import info_command  # noqa: E402
from csrfguard.cli.run import run_command  # noqa: E402
from csrfguard.cli.token import token_command  # noqa: E402

cli.add_command(run_command, name="run")
cli.add_command(token_command, name="token")
cli.add_command(info_command, name="info")
