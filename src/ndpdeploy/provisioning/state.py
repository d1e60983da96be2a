from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Dict, Iterable, Mapping

import structlog

logger = structlog.get_logger()

DEFAULT_STATE_PATH = Path("provisioning_state.env")
STATE_FILE_MODE = 0o600


class ProvisioningState:
    """Durable key/value facts discovered by earlier provisioning runs.

    Persisted as ``key=value`` lines, rewritten atomically after every change.
    Values include live secrets, so the file is kept owner-readable only.
    """

    def __init__(self, path: Path, facts: Dict[str, str] | None = None) -> None:
        self.path = path
        self._facts: Dict[str, str] = dict(facts or {})

    @classmethod
    def load(cls, path: Path | None = None) -> ProvisioningState:
        state_path = path or DEFAULT_STATE_PATH
        if not state_path.exists():
            return cls(state_path)

        facts: Dict[str, str] = {}
        for line in state_path.read_text().splitlines():
            if not line.strip() or line.lstrip().startswith("#"):
                continue
            key, sep, value = line.partition("=")
            if not sep:
                logger.warning("state_line_ignored", path=str(state_path), line=line)
                continue
            facts[key.strip()] = value
        return cls(state_path, facts)

    def get(self, key: str) -> str | None:
        return self._facts.get(key)

    def has_all(self, keys: Iterable[str]) -> bool:
        return all(self._facts.get(key) for key in keys)

    def set(self, key: str, value: str) -> None:
        self.update({key: value})

    def update(self, facts: Mapping[str, str]) -> None:
        for key, value in facts.items():
            _check_fact(key, value)

        changed = False
        for key, value in facts.items():
            if self._facts.get(key) != value:
                self._facts[key] = value
                changed = True
        if changed:
            self.save()

    def discard(self, keys: Iterable[str]) -> None:
        """Forget facts; the file is rewritten only when something was removed."""
        removed = [key for key in keys if self._facts.pop(key, None) is not None]
        if removed:
            self.save()

    def as_dict(self) -> Dict[str, str]:
        return dict(self._facts)

    def save(self) -> None:
        payload = "".join(f"{key}={value}\n" for key, value in self._facts.items())
        write_private_file(self.path, payload)
        logger.debug("state_saved", path=str(self.path), keys=len(self._facts))


def _check_fact(key: str, value: str) -> None:
    if not key or "=" in key or any(ch.isspace() for ch in key):
        raise ValueError(f"Invalid state key: {key!r}")
    if not isinstance(value, str):
        raise ValueError(f"State value for {key!r} must be a string")
    if "\n" in value or "\r" in value:
        raise ValueError(f"State value for {key!r} must be a single line")


def write_private_file(path: Path, content: str) -> None:
    """Atomically replace ``path`` with ``content``, readable by the owner only."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "w") as f:
            f.write(content)
        os.chmod(tmp_name, STATE_FILE_MODE)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
