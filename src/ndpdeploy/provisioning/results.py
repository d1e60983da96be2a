"""Result types for a provisioning run."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List


@dataclass
class ProvisionOutcome:
    """What happened to one service during a run."""

    service: str
    skipped: bool
    summary: str
    cloned: bool = False
    started: bool = False
    credential_extracted: bool = False


@dataclass
class RunSummary:
    """Non-secret, human-readable record of a provisioning run."""

    config_id: str
    host_ip: str = ""
    outcomes: List[ProvisionOutcome] = field(default_factory=list)
    duration_seconds: float = 0.0

    def record(self, outcome: ProvisionOutcome) -> None:
        self.outcomes.append(outcome)

    @property
    def services(self) -> List[str]:
        return [outcome.service for outcome in self.outcomes]

    @property
    def lines(self) -> List[str]:
        return [outcome.summary for outcome in self.outcomes]

    def render(self) -> str:
        header = [f"Config ID: {self.config_id}", f"Machine IP: {self.host_ip}"]
        return "\n".join(header + self.lines) + "\n"

    def write(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.render())
