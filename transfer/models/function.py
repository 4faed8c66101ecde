"""Serverless function model."""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from .resource import Resource


@dataclass
class Function(Resource):
    """A serverless function definition and its environment variables."""
    id: str
    name: str
    runtime: str
    execute: List[str] = field(default_factory=list)
    events: List[str] = field(default_factory=list)
    schedule: str = ""
    timeout: int = 15
    enabled: bool = True
    entrypoint: str = ""
    variables: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def resource_name(cls) -> str:
        return "Function"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "runtime": self.runtime,
            "execute": self.execute,
            "events": self.events,
            "schedule": self.schedule,
            "timeout": self.timeout,
            "enabled": self.enabled,
            "entrypoint": self.entrypoint,
            "variables": self.variables,
        }
