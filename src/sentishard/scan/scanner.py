"""Shard scanning.

A record belongs to the shard that contains its first byte. A shard starting
mid-record skips forward to the next record start; a shard whose last record
runs past ``byte_end`` reads on to that record's separator. Together these
make every record land in exactly one shard for any worker count.
"""

from __future__ import annotations

from dataclasses import dataclass

from sentishard.aggregate.tables import Aggregator
from sentishard.parallel.partition import Shard
from sentishard.parallel.policy import require_positive_int
from sentishard.records import RecordDecoder
from sentishard.scan.mapped import MappedFile

SEPARATOR = b"\n"


@dataclass
class ScanStats:
    records: int = 0
    skipped: int = 0
    segments: int = 0
    bytes_scanned: int = 0
    effective_start: int = 0


def effective_start(view, shard: Shard) -> int:
    limit = min(shard.byte_end, view.size)
    if shard.byte_start <= 0:
        return 0
    if shard.byte_start > limit:
        return limit
    # Searching from byte_start - 1 keeps a record that begins exactly at byte_start.
    index = view.find(SEPARATOR, shard.byte_start - 1, limit)
    if index < 0:
        return limit
    return index + 1


def segment_end(view, position: int, end: int, segment_bytes: int) -> int:
    nominal = min(position + segment_bytes, end)
    index = view.find(SEPARATOR, nominal - 1)
    if index < 0:
        return view.size
    return index + 1


class ShardScanner:
    def __init__(self, decoder: RecordDecoder, aggregator: Aggregator, segment_bytes: int):
        self.decoder = decoder
        self.aggregator = aggregator
        self.segment_bytes = require_positive_int("segment_bytes", segment_bytes)

    def scan(self, view, shard: Shard) -> ScanStats:
        end = min(shard.byte_end, view.size)
        position = effective_start(view, shard)
        stats = ScanStats(effective_start=position)
        while position < end:
            cut = segment_end(view, position, end, self.segment_bytes)
            segment = view.read(position, cut)
            stats.segments += 1
            stats.bytes_scanned += len(segment)
            self._consume(segment, stats)
            position = cut
        return stats

    def _consume(self, segment: bytes, stats: ScanStats) -> None:
        decode = self.decoder.decode
        add = self.aggregator.add
        for line in segment.split(SEPARATOR):
            line = line.strip()
            if not line:
                continue
            try:
                record = decode(line)
            except Exception:
                # Noisy input is expected; bad lines only show up in the skipped count.
                stats.skipped += 1
                continue
            add(record)
            stats.records += 1


def scan_shard(path, shard: Shard, *, decoder: RecordDecoder, segment_bytes: int, aggregator: Aggregator | None = None):
    """Map ``path``, scan ``shard`` into ``aggregator`` and release the mapping."""
    target = Aggregator() if aggregator is None else aggregator
    scanner = ShardScanner(decoder, target, segment_bytes)
    with MappedFile(path) as view:
        stats = scanner.scan(view, shard)
    return target, stats


__all__ = ["SEPARATOR", "ScanStats", "ShardScanner", "effective_start", "scan_shard", "segment_end"]
