"""Local credential store and settings resolution."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic import ValidationError

from .errors import ConfigCorrupt, ConfigMissing, IoError
from .models import Credentials

log = logging.getLogger(__name__)

CONFIG_FILE = "credentials.json"
DEFAULT_BASE_URL = "https://www.moltbook.com/api/v1"
DEFAULT_TIMEOUT = 30.0


def config_path() -> Path:
    override = os.environ.get("MOLTBOOK_CONFIG_DIR")
    if override:
        return Path(override).expanduser() / CONFIG_FILE

    xdg_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_home:
        return Path(xdg_home).expanduser() / "moltbook" / CONFIG_FILE
    return Path.home() / ".config" / "moltbook" / CONFIG_FILE


class CredentialStore:
    """Reads and writes the ``{api_key, agent_name}`` credentials file."""

    def __init__(self, path: Path | None = None):
        self.path = path or config_path()

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Credentials:
        if not self.path.exists():
            raise ConfigMissing(self.path)
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise IoError(f"Unable to read config file {self.path}: {exc}") from exc
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ConfigCorrupt(self.path, str(exc)) from exc
        if not isinstance(parsed, dict):
            raise ConfigCorrupt(self.path, "expected a JSON object")
        try:
            creds = Credentials.model_validate(parsed)
        except ValidationError as exc:
            missing = ", ".join(str(err["loc"][0]) for err in exc.errors() if err.get("loc"))
            raise ConfigCorrupt(self.path, f"invalid or missing fields: {missing}") from exc
        log.debug("Loaded credentials for %s from %s", creds.agent_name, self.path)
        return creds

    def save(self, creds: Credentials) -> None:
        """Overwrite the credentials file and restrict it to the owner."""
        serialized = json.dumps(creds.model_dump(), indent=2) + "\n"
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(serialized, encoding="utf-8")
            if os.name != "nt":
                self.path.chmod(0o600)
        except OSError as exc:
            raise IoError(f"Failed to write config {self.path}: {exc}") from exc
        log.debug("Saved credentials for %s to %s", creds.agent_name, self.path)


def resolve_setting(flag_value, env_name: str, config_value, default_value):
    if flag_value is not None:
        return flag_value
    env_value = os.environ.get(env_name)
    if env_value not in (None, ""):
        return env_value
    if config_value is not None:
        return config_value
    return default_value
