# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

from .hints import Route
from .resolver import Resolver, ResolveError
