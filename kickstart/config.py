"""kickstart configuration.

Run-level settings for a generation: where to write the project, whether to
prompt, whether to run hooks.  Settings use a Pydantic v2 model so they are
validated at construction time and can be built from the CLI or from
environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Union

from pydantic import BaseModel, Field, StrictBool, StrictInt, StrictStr

MANIFEST_FILENAME = "template.toml"

_TRUTHY = {"1", "true", "yes", "y", "on"}
_FALSY = {"0", "false", "no", "n", "off"}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")


class Config(BaseModel):
    """Settings for one generation run.

    ``overrides`` maps variable names to values supplied up-front; strings
    are interpreted according to the variable's type the same way typed
    input would be.
    """

    output_dir: Path = Field(default=Path("."))
    directory: str | None = Field(
        default=None, description="Sub-directory of the source that holds template.toml"
    )
    no_input: bool = Field(default=False, description="Use defaults instead of prompting")
    run_hooks: bool = Field(default=True, description="Run pre/post generation hooks")
    hook_timeout: float | None = Field(
        default=None, gt=0, description="Per-hook timeout in seconds"
    )
    manifest_filename: str = Field(default=MANIFEST_FILENAME)
    overrides: dict[str, Union[StrictBool, StrictInt, StrictStr]] = Field(default_factory=dict)

    @classmethod
    def from_env(cls, **kwargs: Any) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            KICKSTART_OUTPUT_DIR, KICKSTART_DIRECTORY, KICKSTART_NO_INPUT,
            KICKSTART_RUN_HOOKS, KICKSTART_HOOK_TIMEOUT.

        Keyword arguments win over the environment.
        """
        values: dict[str, Any] = {}
        if os.environ.get("KICKSTART_OUTPUT_DIR"):
            values["output_dir"] = Path(os.environ["KICKSTART_OUTPUT_DIR"])
        if os.environ.get("KICKSTART_DIRECTORY"):
            values["directory"] = os.environ["KICKSTART_DIRECTORY"]
        values["no_input"] = _env_flag("KICKSTART_NO_INPUT", False)
        values["run_hooks"] = _env_flag("KICKSTART_RUN_HOOKS", True)
        if os.environ.get("KICKSTART_HOOK_TIMEOUT"):
            values["hook_timeout"] = float(os.environ["KICKSTART_HOOK_TIMEOUT"])

        values.update(kwargs)
        return cls(**values)
