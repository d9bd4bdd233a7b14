"""Subprocess runner and the npm-check-updates proposer."""

from __future__ import annotations

import asyncio
import json
import os
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any, cast

from deppy.domain.ports.workspace import CommandError, CommandResult

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from pathlib import Path

    from deppy.domain.ports.workspace import CommandRunner

log = getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 600.0
NCU_COMMAND: tuple[str, ...] = ("npx", "--yes", "npm-check-updates")


class AsyncCommandRunner:
    def __init__(self, *, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self._timeout_seconds = timeout_seconds

    async def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        log.debug("Running %s in %s", " ".join(args), cwd)
        environment = {**os.environ, **env} if env else None
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                cwd=cwd,
                env=environment,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise CommandError(f"Could not start {args[0]}: {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self._timeout_seconds
            )
        except TimeoutError as exc:
            process.kill()
            await process.wait()
            raise CommandError(
                f"{args[0]} timed out after {self._timeout_seconds:.0f}s"
            ) from exc

        returncode = process.returncode if process.returncode is not None else -1
        return CommandResult(
            returncode=returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )


def parse_upgrades(output: str) -> dict[str, str]:
    """Read the ``--jsonUpgraded`` object; blank output means nothing to upgrade."""

    text = output.strip()
    if not text:
        return {}
    try:
        document = json.loads(text[text.find("{") :])
    except ValueError as exc:
        raise CommandError("npm-check-updates printed invalid JSON", output=output) from exc
    if not isinstance(document, dict):
        raise CommandError("npm-check-updates printed no JSON object", output=output)
    return {
        str(name): str(version) for name, version in cast(dict[str, Any], document).items()
    }


@dataclass(slots=True)
class NpmCheckUpdates:
    """Upgrades a manifest in place with ``npm-check-updates``."""

    runner: CommandRunner
    command: Sequence[str] = NCU_COMMAND

    async def propose_and_apply(self, manifest_path: Path) -> dict[str, str]:
        args = [
            *self.command,
            "--upgrade",
            "--jsonUpgraded",
            "--packageFile",
            manifest_path.name,
        ]
        result = await self.runner.run(args, cwd=manifest_path.parent)
        if not result.ok:
            raise CommandError(
                f"npm-check-updates exited with {result.returncode}",
                returncode=result.returncode,
                output=result.stderr,
            )
        return parse_upgrades(result.stdout)
