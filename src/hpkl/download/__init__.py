# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

from .download import PackageDownloader, DownloadResult, DownloadStatus
