"""
Progress plumbing for pack transfers.

A transfer has two phases, both reported through the same IndexerProgress
counters:

    1. Receiving: pack bytes arrive from the remote and are spooled locally.
       ``received_bytes`` grows; ``total_objects`` is read from the pack header.
    2. Indexing: the spooled pack is read back object by object before it is
       handed to the object store. ``received_objects``, ``indexed_objects``,
       ``total_deltas`` and ``local_objects`` grow; the final snapshot, with
       ``indexed_deltas`` caught up, is emitted just before the pack is
       written to the object store.

The caller's callback is invoked with an immutable snapshot after every chunk
and every object. Returning ``False`` from the callback raises
CancellationError on the transfer's own thread, which unwinds the fetch before
anything is committed.
"""

import hashlib
import logging
import struct
from dataclasses import asdict
from tempfile import SpooledTemporaryFile
from typing import Callable, Optional

from dulwich.objects import sha_to_hex
from dulwich.pack import OFS_DELTA, REF_DELTA, PackStreamReader

from assetsync.errors import CancellationError
from assetsync.model import IndexerProgress

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[IndexerProgress], Optional[bool]]

# Packs larger than this are spooled to disk instead of memory
PACK_SPOOL_MAX_SIZE = 16 * 1024 * 1024

_PACK_HEADER_SIZE = 12


class ProgressTracker:
    """Holds the counters of one transfer and forwards snapshots to the callback."""

    def __init__(self, callback: Optional[ProgressCallback] = None, key=None):
        self._callback = callback
        self._counters = asdict(IndexerProgress())
        self.key = key

    @property
    def snapshot(self) -> IndexerProgress:
        return IndexerProgress(**self._counters)

    def update(self, **values: int) -> None:
        """Raise counters to the given values; counters never go down."""
        for name, value in values.items():
            if value > self._counters[name]:
                self._counters[name] = value

    def advance(self, **increments: int) -> None:
        for name, increment in increments.items():
            self._counters[name] += increment

    def emit(self) -> None:
        if self._callback is None:
            return
        if self._callback(self.snapshot) is False:
            logger.info(f"Transfer of {self.key} cancelled by progress callback")
            raise CancellationError(key=self.key)


class PackReceiver:
    """
    Sink passed to ``GitClient.fetch_pack`` as ``pack_data``.

    Spools the incoming pack and reports received bytes. The object count is
    taken from the pack header as soon as the first 12 bytes have arrived.
    """

    def __init__(self, tracker: ProgressTracker, spool_dir: Optional[str] = None):
        self._tracker = tracker
        self._file = SpooledTemporaryFile(
            max_size=PACK_SPOOL_MAX_SIZE, prefix="incoming-", dir=spool_dir
        )
        self._header = b""
        self.size = 0

    def __call__(self, data: bytes) -> None:
        self._file.write(data)
        self.size += len(data)

        if len(self._header) < _PACK_HEADER_SIZE:
            self._header += data[: _PACK_HEADER_SIZE - len(self._header)]
            if len(self._header) == _PACK_HEADER_SIZE and self._header[:4] == b"PACK":
                (num_objects,) = struct.unpack(">I", self._header[8:12])
                self._tracker.update(total_objects=num_objects)

        self._tracker.update(received_bytes=self.size)
        self._tracker.emit()

    def rewind(self):
        self._file.seek(0)
        return self._file

    def close(self) -> None:
        self._file.close()


def index_pack(receiver: PackReceiver, object_store, tracker: ProgressTracker) -> int:
    """
    Walk a received pack, then add it to the object store.

    Thin packs are completed from objects already present in the store; those
    bases are counted as ``local_objects``. The last snapshot is emitted before
    the pack is written, so a cancellation never leaves an unreferenced pack
    behind.

    Args:
        receiver: The receiver the pack was spooled into
        object_store: dulwich object store of the target repository
        tracker: Progress tracker of the transfer

    Returns:
        Number of objects in the pack
    """
    if not receiver.size:
        return 0

    local_bases = set()
    reader = PackStreamReader(hashlib.sha1, receiver.rewind().read)
    for unpacked in reader.read_objects():
        tracker.advance(received_objects=1)
        if unpacked.pack_type_num in (OFS_DELTA, REF_DELTA):
            tracker.advance(total_deltas=1)
            if unpacked.pack_type_num == REF_DELTA:
                base = unpacked.delta_base
                if len(base) == 20:
                    base = sha_to_hex(base)
                if base not in local_bases and base in object_store:
                    local_bases.add(base)
                    tracker.advance(local_objects=1)
        else:
            tracker.advance(indexed_objects=1)
        tracker.emit()

    num_objects = len(reader)
    # Some servers send an empty pack when there is nothing to fetch
    if not num_objects:
        return 0

    current = tracker.snapshot
    tracker.update(
        total_objects=num_objects,
        indexed_objects=num_objects,
        indexed_deltas=current.total_deltas,
    )
    tracker.emit()

    logger.debug(f"Adding pack of {num_objects} objects to {object_store}")
    object_store.add_thin_pack(receiver.rewind().read, None)
    return num_objects


class SidebandLogger:
    """Collects remote progress messages (sideband channel 2) and logs them."""

    def __init__(self, remote_url: str):
        self._remote_url = remote_url
        self._buffer = b""

    def __call__(self, message: bytes) -> None:
        self._buffer += message
        *lines, self._buffer = self._buffer.replace(b"\r", b"\n").split(b"\n")
        for line in lines:
            text = line.decode("utf-8", errors="replace").strip()
            if text:
                logger.debug(f"remote {self._remote_url}: {text}")
