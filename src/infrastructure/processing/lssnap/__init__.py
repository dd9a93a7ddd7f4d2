"""
.lssnap snapshot I/O.

Public API:
-----------
**Reading**:
- decode()                - Full decode into a PointCloudSnapshot
- describe()              - Header-only inspection

**Writing**:
- encode()                - Encode arrays (and annotations) to bytes
- write_snapshot()        - Encode and write to a file

Architecture:
-------------
```
format.py          - Layout constants, SnapshotHeader, describe()
decoder.py         - Vertex block decode (hard failures)
annotations.py     - Annotation block parse (tolerant)
writer.py          - Encoder
```
"""

from src.infrastructure.processing.lssnap.decoder import decode
from src.infrastructure.processing.lssnap.format import (
    HEADER_SIZE,
    MAGIC,
    VERSION,
    VERTEX_RECORD_SIZE,
    SnapshotHeader,
    describe,
)
from src.infrastructure.processing.lssnap.writer import encode, write_snapshot

__all__ = [
    "decode",
    "describe",
    "SnapshotHeader",
    "encode",
    "write_snapshot",
    "HEADER_SIZE",
    "MAGIC",
    "VERSION",
    "VERTEX_RECORD_SIZE",
]
