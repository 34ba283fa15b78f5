"""composewatch deployment engine.

This package syncs the project repository, snapshots the rendered compose
config, classifies what changed and runs the matching compose commands.
"""

from composewatch.deploy.classifier import ClassifierSignals, classify
from composewatch.deploy.directives import parse_commit_directives
from composewatch.deploy.pipeline import DeploymentRun

__all__ = [
    "ClassifierSignals",
    "DeploymentRun",
    "classify",
    "parse_commit_directives",
]
