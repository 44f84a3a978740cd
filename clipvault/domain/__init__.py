"""Media pipeline building blocks, re-exported for the services layer."""

from clipvault.ingest.asset_reference import AssetReference, decode_reference, encode_reference
from clipvault.ingest.object_key import new_object_key
from clipvault.ingest.orientation import Orientation, classify_orientation
from clipvault.ingest.probe import StreamGeometry, probe_media
from clipvault.ingest.remux import fast_start_path, remux_for_fast_start
from clipvault.ingest.sniff import SNIFF_LEN, detect_content_type

__all__ = [
    "AssetReference",
    "decode_reference",
    "encode_reference",
    "new_object_key",
    "Orientation",
    "classify_orientation",
    "StreamGeometry",
    "probe_media",
    "fast_start_path",
    "remux_for_fast_start",
    "SNIFF_LEN",
    "detect_content_type",
]
