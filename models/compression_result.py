from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import base64
import math

QUANTIZED_MIME_TYPE = "image/png"
DOWNLOAD_PREFIX = "vq_"


def format_bytes(num_bytes: int, decimals: int = 2) -> str:
    """Human-readable size, e.g. 1536 -> '1.5 KB'."""
    if num_bytes == 0:
        return "0 Bytes"
    k = 1024
    dm = max(decimals, 0)
    sizes = ["Bytes", "KB", "MB", "GB"]
    i = min(int(math.floor(math.log(num_bytes) / math.log(k))), len(sizes) - 1)
    text = f"{num_bytes / k ** i:.{dm}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return f"{text} {sizes[i]}"


@dataclass
class CompressionStats:
    original_size: int        # bytes
    compressed_size: int      # bytes, never above original_size
    reduction_percentage: float

    def to_dict(self) -> dict:
        return {
            "originalSize": self.original_size,
            "compressedSize": self.compressed_size,
            "reductionPercentage": self.reduction_percentage,
        }


@dataclass
class CompressionResult:
    """
    Final output of the pipeline: either the quantized PNG or the untouched
    original, together with its size statistics.
    """
    data: bytes
    mime_type: str
    stats: CompressionStats
    compression_applied: bool

    @property
    def data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("utf-8")
        return f"data:{self.mime_type};base64,{encoded}"

    def download_name(self, original_name: str) -> str:
        """
        Quantized output is always PNG, so the suffix follows the content.
        """
        if not self.compression_applied:
            return original_name
        return f"{DOWNLOAD_PREFIX}{Path(original_name).stem}.png"

    def to_dict(self) -> dict:
        return {
            "compressionApplied": self.compression_applied,
            "mimeType": self.mime_type,
            "stats": self.stats.to_dict(),
        }
