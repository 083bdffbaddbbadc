# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

import logging

from ..config import AppConfig, DEFAULT_TIMEOUT
from ..package.model import Metadata
from ..project import Project
from ..resolver import Resolver


logger = logging.getLogger(__name__)


class ProjectInput:
    """
    Mixin for commands that resolve the dependencies of the project in the
    working directory
    """

    @classmethod
    def parser_add_project_args(cls, parser):
        parser.add_argument(
            "--project-dir",
            default=".",
            help="directory containing the PklProject.json file (default: current directory)",
        )
        parser.add_argument(
            "--plain-http",
            help="use plain HTTP instead of HTTPS for all remotes",
            action="store_true",
        )
        parser.add_argument(
            "--timeout",
            type=float,
            default=DEFAULT_TIMEOUT,
            help="timeout in seconds of a single request, 0 to disable (default: %(default)s)",
        )

    @classmethod
    def resolve_project(
        cls, config: AppConfig, resolver: Resolver
    ) -> tuple[Project, dict[str, Metadata]]:
        """
        Resolve all dependencies of the project and keep only the latest version
        of each package line.
        """
        project = Project.load(config.working_dir)
        if not project.dependencies:
            logger.warning(f"Project '{project.project_file}' has no dependencies")
        resolved = resolver.resolve(project.dependencies)
        deduplicated = resolver.deduplicate(resolved)
        logger.info(f"Resolved {len(resolved)} packages, {len(deduplicated)} after deduplication")
        return project, deduplicated
