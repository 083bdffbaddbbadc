# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

import json
import logging
from pathlib import Path

import jsonschema

from .errors import ProjectError
from .package.model import ProjectDependencies
from . import schema

logger = logging.getLogger(__name__)

LOCK_FILE = "PklProject.deps.json"


def write_lockfile(deps: ProjectDependencies, project_dir: Path) -> Path:
    """
    Write the lock-file of a project. The output is stable for equal inputs.
    """
    data = deps.to_json()
    jsonschema.validate(data, schema=schema.lockfile)
    path = project_dir / LOCK_FILE
    logger.info(f"Write lock-file {path}")
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
        f.write("\n")
    return path


def read_lockfile(project_dir: Path) -> ProjectDependencies | None:
    """
    Read the lock-file of a project. Returns None if the project has none.
    """
    path = project_dir / LOCK_FILE
    if not path.is_file():
        return None
    try:
        with open(path, "r") as f:
            data = json.load(f)
        jsonschema.validate(data, schema=schema.lockfile)
    except (ValueError, jsonschema.ValidationError) as e:
        raise ProjectError(f"Invalid lock-file '{path}': {e}") from e
    return ProjectDependencies.from_json(data)
