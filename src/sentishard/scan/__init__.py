from sentishard.scan.mapped import MappedFile, file_size
from sentishard.scan.scanner import ScanStats, ShardScanner, effective_start, scan_shard, segment_end

__all__ = ["MappedFile", "ScanStats", "ShardScanner", "effective_start", "file_size", "scan_shard", "segment_end"]
