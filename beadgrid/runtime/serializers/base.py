# Copyright (c) 2026 Beadgrid
# SPDX-License-Identifier: MIT

"""Base types and utilities for serializers."""

import json
from enum import Enum


class SerializerFormat(Enum):
    """Output format for serializers."""

    JSON = "json"
    JSON_PRETTY = "json_pretty"


def dump_json(data: dict, format: SerializerFormat) -> str:
    """Encode data as compact or indented JSON."""
    if format == SerializerFormat.JSON_PRETTY:
        return json.dumps(data, indent=2, ensure_ascii=False)
    if format == SerializerFormat.JSON:
        return json.dumps(data, separators=(",", ":"), ensure_ascii=False)
    raise ValueError(f"Unsupported JSON format: {format}")
