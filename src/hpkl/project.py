# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

from dataclasses import dataclass, field
import json
import logging
from pathlib import Path

from .errors import ProjectError
from .package.model import Dependency

logger = logging.getLogger(__name__)

# JSON rendering of the PklProject file, e.g. created by `pkl eval -f json PklProject`
PROJECT_FILE = "PklProject.json"


@dataclass
class Project:
    """
    The parts of a Pkl project that are relevant for dependency resolution.
    """

    project_file: Path
    dependencies: dict[str, Dependency] = field(default_factory=dict)

    @property
    def project_dir(self) -> Path:
        return self.project_file.parent

    @classmethod
    def load(cls, working_dir: Path) -> "Project":
        """
        Load the project descriptor from ``working_dir``.
        """
        project_file = working_dir / PROJECT_FILE
        if not project_file.is_file():
            raise ProjectError(
                f"{PROJECT_FILE} file not found in the working directory {working_dir}"
            )
        logger.info(f"Loading project file '{project_file}'...")
        try:
            with open(project_file, "r") as f:
                data = json.load(f)
            dependencies = {
                alias: Dependency.from_json(dep, name=alias)
                for alias, dep in (data.get("dependencies") or {}).items()
            }
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            raise ProjectError(f"Cannot read project file '{project_file}': {e}") from e
        return cls(project_file=project_file, dependencies=dependencies)
