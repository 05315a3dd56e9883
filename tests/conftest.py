from __future__ import annotations

import json
import random

import pytest

from sentishard.records import JsonRecordDecoder

ALICE_BOB = [
    {"time": "2023-01-01T10:15:00Z", "id": "1", "name": "alice", "metric": 0.5},
    {"time": "2023-01-01T10:45:00Z", "id": "2", "name": "bob", "metric": -0.2},
]


def ndjson_bytes(rows, *, trailing_newline=True) -> bytes:
    lines = []
    for row in rows:
        lines.append(row if isinstance(row, str) else json.dumps(row, ensure_ascii=False))
    text = "\n".join(lines)
    if trailing_newline and lines:
        text += "\n"
    return text.encode("utf-8")


def noisy_rows(count: int, *, seed: int = 7) -> list:
    """Mixed input: valid rows, blank lines, garbage and rows missing fields."""
    rng = random.Random(seed)
    names = ["alice", "bob", "carol", "dave", "émile", "朝日"]
    rows: list = []
    for i in range(count):
        roll = rng.random()
        if roll < 0.05:
            rows.append("")
        elif roll < 0.1:
            rows.append("{not json")
        elif roll < 0.15:
            rows.append({"id": str(rng.randrange(20)), "name": rng.choice(names)})
        elif roll < 0.2:
            rows.append({"time": f"2024-03-0{rng.randrange(1, 4)}T0{rng.randrange(10)}:00:00Z", "metric": 1.0})
        else:
            uid = rng.randrange(20)
            rows.append(
                {
                    "time": f"2024-03-0{rng.randrange(1, 4)}T{rng.randrange(24):02d}:{rng.randrange(60):02d}:00Z",
                    "id": str(uid),
                    "name": names[uid % len(names)],
                    "metric": round(rng.uniform(-1.0, 1.0), 3),
                    "note": "x" * rng.randrange(0, 40),
                }
            )
        if i % 17 == 0:
            rows.append("   ")
    return rows


@pytest.fixture
def flat_decoder():
    return JsonRecordDecoder()


@pytest.fixture
def write_ndjson(tmp_path):
    counter = {"n": 0}

    def _write(rows, *, trailing_newline=True, name=None):
        counter["n"] += 1
        path = tmp_path / (name or f"input_{counter['n']}.ndjson")
        path.write_bytes(ndjson_bytes(rows, trailing_newline=trailing_newline))
        return path

    return _write


@pytest.fixture
def alice_bob_rows():
    return [dict(row) for row in ALICE_BOB]


@pytest.fixture
def make_noisy_rows():
    return noisy_rows
