# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

import json
import logging

from .input import ProjectInput
from ..config import AppConfig
from ..lockfile import write_lockfile
from ..resolver import Resolver


logger = logging.getLogger(__name__)


class ResolveCmd(ProjectInput):
    """
    Resolves the dependencies of a project, including transitive dependencies,
    and writes the lock-file.
    """

    @classmethod
    def run(cls, args):
        config = AppConfig.from_args(args)
        with config.create_session() as rs:
            resolver = Resolver.create(config, rs)
            project, resolved = cls.resolve_project(config, resolver)
        deps = resolver.project_dependencies(resolved)
        path = write_lockfile(deps, project.project_dir)

        for line, rd in sorted(deps.resolved_dependencies.items()):
            if args.json:
                print(json.dumps({"package": line, **rd.to_json()}))
            else:
                print(f"{line} -> {rd.uri}")
        if not args.json:
            print(f"wrote {path}")

    @classmethod
    def setup_parser(cls, parser):
        cls.parser_add_project_args(parser)
