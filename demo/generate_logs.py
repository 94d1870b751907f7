#!/usr/bin/env python3
"""Emit application log lines at a steady pace, for live-tail demos.

Usage:
    python demo/generate_logs.py 200 0.05 | txtflow -c "grep ERROR | wc -l" --follow
"""

import random
import sys
import time

LEVELS = ["INFO", "INFO", "INFO", "DEBUG", "WARN", "ERROR"]
COMPONENTS = ["api", "auth", "db", "cache", "worker"]
MESSAGES = [
    "request served",
    "connection opened",
    "connection closed",
    "cache miss",
    "retrying operation",
    "timeout talking to upstream",
]


def generate_line(n):
    return (
        f"{n:06d} {random.choice(LEVELS):<5} "
        f"[{random.choice(COMPONENTS)}] {random.choice(MESSAGES)}"
    )


if __name__ == "__main__":
    count = int(sys.argv[1]) if len(sys.argv) > 1 else 100
    delay = float(sys.argv[2]) if len(sys.argv) > 2 else 0.1
    for i in range(count):
        print(generate_line(i), flush=True)
        time.sleep(delay)
