# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

"""
Dependency resolution and package acquisition for Pkl projects.
"""
