# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Metadata codecs.

The log store persists entry metadata as an opaque blob. A codec turns the
metadata mapping into bytes on the way in and back into a mapping on the
way out; the store never looks inside the blob.
"""

import json
from abc import ABC, abstractmethod
from typing import Any


class MetadataCodecError(ValueError):
    """Raised when metadata cannot be encoded or decoded."""
    pass


class MetadataCodec(ABC):
    """Abstract base class for metadata codecs."""

    @abstractmethod
    def encode(self, metadata: dict[str, Any]) -> bytes:
        """Encode a metadata mapping.

        Args:
            metadata: Mapping with string keys

        Returns:
            Encoded bytes (never empty; an empty blob means "no metadata")

        Raises:
            MetadataCodecError: If the mapping cannot be encoded
        """
        pass

    @abstractmethod
    def decode(self, data: bytes) -> dict[str, Any]:
        """Decode bytes produced by encode().

        Args:
            data: Encoded metadata

        Returns:
            Decoded mapping

        Raises:
            MetadataCodecError: If the data is not in this codec's format
        """
        pass


class JsonMetadataCodec(MetadataCodec):
    """Versioned JSON codec.

    Layout: one format-version byte followed by UTF-8 JSON. Values JSON
    cannot represent are stored as their ``str()`` form.
    """

    VERSION = 1

    def encode(self, metadata: dict[str, Any]) -> bytes:
        if not isinstance(metadata, dict):
            raise MetadataCodecError(f"Metadata must be a dict, got {type(metadata).__name__}")
        try:
            payload = json.dumps(metadata, sort_keys=True, ensure_ascii=False, default=str)
        except (TypeError, ValueError) as e:
            raise MetadataCodecError(f"Unable to encode metadata: {e}") from e
        return bytes([self.VERSION]) + payload.encode("utf-8")

    def decode(self, data: bytes) -> dict[str, Any]:
        if not data:
            raise MetadataCodecError("Cannot decode an empty metadata blob")
        version = data[0]
        if version != self.VERSION:
            raise MetadataCodecError(f"Unsupported metadata format version: {version}")
        try:
            value = json.loads(data[1:].decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise MetadataCodecError(f"Invalid metadata payload: {e}") from e
        if not isinstance(value, dict):
            raise MetadataCodecError("Metadata payload is not a JSON object")
        return value


def create_metadata_codec(codec_type: str | None = None) -> MetadataCodec:
    """Factory function to create a metadata codec.

    Args:
        codec_type: Codec name. Options: "json". Defaults to "json".

    Returns:
        MetadataCodec instance

    Raises:
        ValueError: If codec_type is not recognized
    """
    codec_type = (codec_type or "json").lower()
    if codec_type == "json":
        return JsonMetadataCodec()
    raise ValueError(f"Unknown metadata codec: {codec_type}. Must be one of: json")
