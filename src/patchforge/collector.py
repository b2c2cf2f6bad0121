"""Collector interface: inclusion rules that map sources to artifacts."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Protocol

from pydantic import BaseModel, Field

from . import hcl

logger = logging.getLogger(__name__)


class InclusionRule(BaseModel):
    """Declares that a set of sources belongs to an artifact."""

    model_config = {"frozen": True, "extra": "forbid"}

    name: str = Field(min_length=1)
    sources: list[str] = Field(default_factory=list)
    depends: list[str] = Field(default_factory=list)
    variant: str | None = None


class Collector(Protocol):
    """Supplies the inclusion rules for a target platform."""

    def collect(self, platform: str) -> list[InclusionRule]: ...


class StaticCollector:
    """Collector over a fixed list of rules."""

    def __init__(self, rules: list[InclusionRule]) -> None:
        self.rules = list(rules)

    def collect(self, platform: str) -> list[InclusionRule]:
        return list(self.rules)


class HclCollector:
    """Read ``artifact`` blocks from an HCL file or a directory of them.

    Files are rendered with Jinja2 before parsing; the target platform is
    available to templates as ``platform``.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        recurse: bool = True,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.path = Path(path)
        self.recurse = recurse
        self.context = context or {}

    def files(self) -> list[Path]:
        if self.path.is_file():
            return [self.path]
        if not self.path.is_dir():
            raise FileNotFoundError(f"No such file or directory: '{self.path}'")
        pattern = "**/*.hcl" if self.recurse else "*.hcl"
        return sorted(self.path.glob(pattern))

    def collect(self, platform: str) -> list[InclusionRule]:
        context = {**self.context, "platform": platform}
        rules: list[InclusionRule] = []
        for file in self.files():
            logger.debug("Collecting rules from %s", file)
            data = hcl.load(file, context=context, platform=platform)
            rules.extend(parse_rules(data))
        logger.info("Collected %d inclusion rule(s) for '%s'", len(rules), platform)
        return rules


def parse_rules(data: dict[str, Any]) -> list[InclusionRule]:
    """Extract InclusionRules from parsed HCL data.

    HCL2 structure for artifact blocks:
        {"artifact": [{"ui/main": {"sources": [...], "depends": [...]}}, ...]}
    """
    rules: list[InclusionRule] = []
    for block in data.get("artifact", []):
        for name, attrs in block.items():
            if name.startswith("__"):
                continue
            fields = {k: v for k, v in attrs.items() if not k.startswith("__")}
            unknown = set(fields) - {"sources", "depends", "variant"}
            if unknown:
                raise ValueError(f"Artifact '{name}' has unknown attribute(s): {', '.join(sorted(unknown))}")
            rules.append(InclusionRule(name=name, **fields))
    return rules
