"""Sample-rate conversion and fixed-point encoding."""

from voxduplex.codec.resample import resample
from voxduplex.codec.pcm import float_to_pcm16, merge_pcm16, pcm16_to_bytes, pcm16_to_float

__all__ = [
    "resample",
    "float_to_pcm16",
    "merge_pcm16",
    "pcm16_to_bytes",
    "pcm16_to_float",
]
