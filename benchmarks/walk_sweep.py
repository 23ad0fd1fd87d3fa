"""Parametric benchmark sweep: vary tree width, tree depth, and buffer size."""
from __future__ import annotations

import gc
import os
import tempfile
import time
import tracemalloc
from typing import Callable

from diriter import (
    RECURSE_INTO_DIRECTORIES,
    DirIterator,
    HostFileSystem,
    MemoryCatalogueReader,
    ScandirCatalogueReader,
)


def _measure(fn: Callable[[], None]) -> tuple[float, float]:
    """Run fn once, return (elapsed_sec, peak_kib)."""
    gc.collect()
    tracemalloc.start()
    t0 = time.perf_counter()
    fn()
    elapsed = time.perf_counter() - t0
    _, peak = tracemalloc.get_traced_memory()
    tracemalloc.stop()
    gc.collect()
    return elapsed, peak / 1024.0


# ---------------------------------------------------------------------------
#  Tree builders
# ---------------------------------------------------------------------------

def _names(width: int, depth: int, prefix: str = "") -> list[tuple[str, bool]]:
    """(relative path, is_dir) pairs for a tree of *width* dirs and files per level."""
    result: list[tuple[str, bool]] = []
    for i in range(width):
        result.append((f"{prefix}file{i:04d}", False))
    if depth > 0:
        for i in range(width):
            d = f"{prefix}dir{i:04d}"
            result.append((d, True))
            result.extend(_names(width, depth - 1, d + "/"))
    return result


def _memory_host(width: int, depth: int) -> HostFileSystem:
    host = HostFileSystem()
    host.mkdir("ROOT")
    for rel, is_dir in _names(width, depth):
        if is_dir:
            host.mkdir(f"ROOT/{rel}")
        else:
            host.create_file(f"ROOT/{rel}", length=1024)
    return host


def _disc_tree(td: str, width: int, depth: int) -> None:
    for rel, is_dir in _names(width, depth):
        path = os.path.join(td, *rel.split("/"))
        if is_dir:
            os.makedirs(path, exist_ok=True)
        else:
            with open(path, "wb") as f:
                f.write(b"w" * 16)


# ---------------------------------------------------------------------------
#  Walkers
# ---------------------------------------------------------------------------

def _walk_iterator(reader, root: str, expected: int, buffer_size: int = 512) -> None:
    count = 0
    with DirIterator(reader, root, RECURSE_INTO_DIRECTORIES, buffer_size=buffer_size) as it:
        while not it.is_empty():
            count += 1
            it.advance()
    assert count == expected


def _walk_os(root: str, expected: int) -> None:
    count = 0
    for _, dirs, files in os.walk(root):
        count += len(dirs) + len(files)
    assert count == expected


# ---------------------------------------------------------------------------
#  Runner
# ---------------------------------------------------------------------------

def _fmt(v: float) -> str:
    if v >= 1000:
        return f"{v:,.0f}"
    return f"{v:.2f}"


def run_sweep() -> str:
    lines: list[str] = []

    # === 1. Tree shape sweep ===
    shapes = [(4, 2), (8, 2), (4, 4), (16, 2), (6, 4), (32, 2)]

    lines.append("## 1. Recursive walk by tree shape")
    lines.append("")
    lines.append("buffer_size = 512 (default)")
    lines.append("")
    lines.append("| Width x Depth | Objects | Memory ms | Memory KiB | scandir ms | scandir KiB | os.walk ms | os.walk KiB |")
    lines.append("|---|---:|---:|---:|---:|---:|---:|---:|")

    for width, depth in shapes:
        label = f"{width} x {depth}"
        print(f"  shape {label} ...", end=" ", flush=True)
        expected = len(_names(width, depth))
        host = _memory_host(width, depth)
        mem_reader = MemoryCatalogueReader(host)

        with tempfile.TemporaryDirectory() as td:
            _disc_tree(td, width, depth)
            t1, m1 = _measure(lambda: _walk_iterator(mem_reader, "ROOT", expected))
            t2, m2 = _measure(lambda: _walk_iterator(ScandirCatalogueReader(), td, expected))
            t3, m3 = _measure(lambda: _walk_os(td, expected))

        lines.append(
            f"| {label} | {expected:,} | {_fmt(t1*1000)} | {_fmt(m1)} "
            f"| {_fmt(t2*1000)} | {_fmt(m2)} "
            f"| {_fmt(t3*1000)} | {_fmt(m3)} |"
        )
        print(f"done (Memory={t1*1000:.0f}ms)")

    lines.append("")

    # === 2. Buffer size sweep ===
    buffer_sizes = [24, 64, 128, 512, 2048, 8192]
    width, depth = 16, 2

    lines.append("## 2. Recursive walk by catalogue buffer size")
    lines.append("")
    lines.append(f"memory host, width = {width}, depth = {depth}")
    lines.append("")
    lines.append("| Buffer | Memory ms | Memory KiB |")
    lines.append("|---:|---:|---:|")

    host = _memory_host(width, depth)
    mem_reader = MemoryCatalogueReader(host)
    expected = len(_names(width, depth))
    for size in buffer_sizes:
        print(f"  buffer {size} ...", end=" ", flush=True)
        t1, m1 = _measure(lambda: _walk_iterator(mem_reader, "ROOT", expected, size))
        lines.append(f"| {size} | {_fmt(t1*1000)} | {_fmt(m1)} |")
        print(f"done ({t1*1000:.0f}ms)")

    lines.append("")
    return "\n".join(lines)


if __name__ == "__main__":
    print("=== Walk Benchmark Sweep ===\n")
    result = run_sweep()
    print("\n" + result)

    # Save to file
    from datetime import datetime
    from pathlib import Path
    out_dir = Path("benchmarks") / "results"
    out_dir.mkdir(parents=True, exist_ok=True)
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    out_path = out_dir / f"walk_sweep_{ts}.md"
    out_path.write_text(f"# Walk Benchmark Sweep\n\n{result}", encoding="utf-8")
    print(f"\nSaved: {out_path}")
