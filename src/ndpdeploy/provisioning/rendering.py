"""
Env file rendering.

A service's ``.env`` is produced from the template shipped in its repository
merged with values computed for this deployment. Existing ``KEY=`` lines are
replaced in place, keys the template does not declare are appended in order.
The same template and values always yield the same bytes.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Mapping, Sequence, Tuple

import structlog

from ndpdeploy.core.errors import TemplateMissing

logger = structlog.get_logger()

_ASSIGNMENT = re.compile(r"^\s*(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)\s*=")


def render_env(template: str, values: Mapping[str, str]) -> str:
    """Merge ``values`` into an env template."""
    lines = template.splitlines()
    seen: set[str] = set()
    rendered = []

    for line in lines:
        match = _ASSIGNMENT.match(line)
        if match and match.group(1) in values:
            key = match.group(1)
            if key in seen:
                continue
            seen.add(key)
            rendered.append(f"{key}={values[key]}")
        else:
            rendered.append(line)

    for key, value in values.items():
        if key not in seen:
            rendered.append(f"{key}={value}")

    return "\n".join(rendered) + "\n" if rendered else ""


def load_template(workdir: Path, alternatives: Sequence[Sequence[str]]) -> str:
    """
    Read the first template alternative whose files all exist.

    Each alternative is a sequence of paths (relative to ``workdir``) that are
    concatenated. No alternatives means the env file starts out empty.

    Raises:
        TemplateMissing: If alternatives are declared but none is present
    """
    if not alternatives:
        return ""

    for files in alternatives:
        paths = [workdir / name for name in files]
        if all(path.is_file() for path in paths):
            parts = [path.read_text() for path in paths]
            return "".join(part if part.endswith("\n") else part + "\n" for part in parts)

    raise TemplateMissing(
        "No env template found in service directory",
        details={
            "workdir": str(workdir),
            "expected": " | ".join("+".join(files) for files in alternatives),
        },
    )


def write_env(path: Path, content: str) -> bool:
    """Write ``content`` to ``path`` when it differs. Returns True if written."""
    if path.exists() and path.read_text() == content:
        logger.debug("env_unchanged", path=str(path))
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    logger.info("env_rendered", path=str(path))
    return True


def copy_env_files(workdir: Path, copies: Sequence[Tuple[str, str]]) -> None:
    """
    Materialize auxiliary env files from templates shipped in the checkout.

    Raises:
        TemplateMissing: If a source file is absent
    """
    for source, destination in copies:
        source_path = workdir / source
        if not source_path.is_file():
            raise TemplateMissing(
                "Env template to copy not found in service directory",
                details={"workdir": str(workdir), "expected": source},
            )
        write_env(workdir / destination, source_path.read_text())
