# Copyright (c) 2026 Beadgrid
# SPDX-License-Identifier: MIT

"""
Serializers for pattern delivery to renderers and reviewers.

Serializers read patterns and assignments; they never modify them.
"""

from beadgrid.runtime.serializers.base import SerializerFormat
from beadgrid.runtime.serializers.document import build_document, to_json
from beadgrid.runtime.serializers.report import to_report

__all__ = [
    "SerializerFormat",
    "build_document",
    "to_json",
    "to_report",
]
