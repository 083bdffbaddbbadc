# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

from .checksum import ChecksumAlgo
from .model import (
    Checksums,
    Dependency,
    Metadata,
    ProjectDependencies,
    ResolvedDependency,
    ResolverType,
    cache_path,
    major_version_package,
)
