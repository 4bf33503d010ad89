"""Version bumps and the composite release commands."""

from relflow.release.bump import BumpTool, BumpVersionTool, VersionBumpController, VersionControl
from relflow.release.orchestrator import ReleaseOrchestrator, TaskRunner
from relflow.release.version import BumpPart, Version, parse_version

__all__ = [
    "BumpPart",
    "BumpTool",
    "BumpVersionTool",
    "ReleaseOrchestrator",
    "TaskRunner",
    "Version",
    "VersionBumpController",
    "VersionControl",
    "parse_version",
]
