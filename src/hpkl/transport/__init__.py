# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

from .base import Transport
from .http import HttpTransport, HttpTransportError
from .registry import RegistryTransport, RegistryError
