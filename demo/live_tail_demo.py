#!/usr/bin/env python3
"""Live tail demo.

Streams generated log lines into a PipelineEngine and prints every result
as the engine re-runs the pipeline against the growing input.

Usage:
    python demo/live_tail_demo.py
"""

import asyncio
import os
import subprocess
import sys

# Add parent directory to path for local development
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from txtflow import Failure, PipelineEngine

COMMAND = "grep -E 'WARN|ERROR' | cut -d' ' -f2 | sort | uniq -c"


def show(result):
    if isinstance(result, Failure):
        print(f"!! {result.message}")
        return
    print("-" * 40)
    print(result.text, end="")


async def main():
    generator = os.path.join(os.path.dirname(os.path.abspath(__file__)), "generate_logs.py")
    producer = subprocess.Popen(
        [sys.executable, generator, "40", "0.05"],
        stdout=subprocess.PIPE,
        text=True,
    )

    engine = PipelineEngine(on_result=show)
    engine.submit(COMMAND)
    await engine.ingest(producer.stdout)
    await engine.wait_idle()
    producer.wait()

    print("=" * 40)
    print(f"Final counts after {engine.source.count(chr(10))} lines:")
    print(engine.output.decode(), end="")


if __name__ == "__main__":
    print("=== Live Tail Demo ===")
    print(f"Pipeline: {COMMAND}")
    asyncio.run(main())
