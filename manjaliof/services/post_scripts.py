"""
Post Script Runner

After a session commits, the CLI may run an executable from
<data>/post_scripts/<name> with the affected client names as arguments
(e.g. `add alice`, `rename alice bob`). Scripts only observe the ledger;
they run after the commit and cannot undo it.
"""

import subprocess
from pathlib import Path
from typing import Optional, Union

import structlog
from pydantic import BaseModel, Field


logger = structlog.get_logger(__name__)


class PostScriptError(Exception):
    """A post script could not be run or exited with a failure."""
    pass


class PostScriptCall(BaseModel):
    """Which script to run and with which arguments."""

    script: str = Field(
        ...,
        pattern="^(add|renew|delete|rename)$",
        description="Script file name inside the post_scripts folder"
    )
    args: list[str] = Field(
        default_factory=list,
        description="Client names passed as plain arguments"
    )


class PostScriptRunner:
    """Runs post scripts from one folder."""

    def __init__(self, scripts_dir: Union[str, Path]):
        self._scripts_dir = Path(scripts_dir)

    def script_path(self, script: str) -> Path:
        return self._scripts_dir / script

    def run(self, call: PostScriptCall) -> Optional[str]:
        """
        Run a post script and wait for it.

        Returns:
            The script's stdout, or None if it printed nothing

        Raises:
            PostScriptError: If the script is missing, can't be executed,
                or exits with a non-zero status
        """
        script_path = self.script_path(call.script)
        logger.info("post_script_started", script=str(script_path), args=call.args)

        try:
            completed = subprocess.run(
                [str(script_path), *call.args],
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            raise PostScriptError(f"couldn't run post script '{script_path}': {e}") from e

        if completed.returncode != 0:
            stderr = completed.stderr.rstrip("\n")
            raise PostScriptError(f"post script exited due to a failure: {stderr}")

        return completed.stdout or None
