from __future__ import annotations

from dataclasses import dataclass

from sentishard.errors import ConfigError
from sentishard.parallel.policy import (
    normalize_transport,
    require_non_negative_int,
    require_positive_int,
    resolve_segment_bytes,
    resolve_timeout,
)


@dataclass(frozen=True)
class RunConfig:
    """Explicit parameters for one run.

    The engine reads nothing from the environment; callers build this from
    :func:`sentishard.config.get_runtime_defaults` or by hand.
    """

    workers: int
    segment_bytes: int
    top_k: int
    transport: str = "process"
    timeout_seconds: float | None = None

    def __post_init__(self):
        try:
            require_positive_int("workers", self.workers)
            require_positive_int("segment_bytes", self.segment_bytes)
            require_non_negative_int("top_k", self.top_k)
            object.__setattr__(self, "transport", normalize_transport(self.transport))
            object.__setattr__(self, "timeout_seconds", resolve_timeout(self.timeout_seconds))
        except (TypeError, ValueError) as exc:
            raise ConfigError("invalid run configuration", exc) from exc

    @classmethod
    def from_defaults(
        cls,
        defaults,
        *,
        workers: int | None = None,
        segment_mib: int | None = None,
        segment_bytes: int | None = None,
        top_k: int | None = None,
        transport: str | None = None,
        timeout_seconds: float | None = None,
    ) -> "RunConfig":
        scan = defaults.scan
        try:
            resolved_segment = resolve_segment_bytes(
                segment_bytes,
                segment_mib=scan.segment_mib if segment_mib is None else segment_mib,
            )
        except (TypeError, ValueError) as exc:
            raise ConfigError("invalid run configuration", exc) from exc
        return cls(
            workers=scan.workers if workers is None else workers,
            segment_bytes=resolved_segment,
            top_k=scan.top_k if top_k is None else top_k,
            transport=scan.transport if transport is None else transport,
            timeout_seconds=timeout_seconds,
        )
