# Copyright (c) 2026 Beadgrid
# SPDX-License-Identifier: MIT

"""
Delivery runtime for beadgrid.

Serialization of patterns and symbol assignments for downstream
consumers:

1. JSON document -- For renderers and exporters
2. Text report -- For reviewing symbol assignments
"""

from beadgrid.runtime.serializers import (
    SerializerFormat,
    build_document,
    to_json,
    to_report,
)

__all__ = [
    "to_json",
    "to_report",
    "build_document",
    "SerializerFormat",
]
