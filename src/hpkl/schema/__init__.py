# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

import json
from pathlib import Path

__all__ = [
    "lockfile",
    "metadata",
]


__SCHEMA_DIR = Path(__file__).parent

with open(__SCHEMA_DIR / "schema-metadata.json") as f:
    metadata = json.load(f)

with open(__SCHEMA_DIR / "schema-lockfile.json") as f:
    lockfile = json.load(f)
