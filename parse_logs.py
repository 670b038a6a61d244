"""
parse_logs.py — Agent City Log Parser
======================================
Scrapes the per-tick summary lines (day, hour, phase, morale, unrest, food,
water, stories) from raw run_*.txt simulation logs and consolidates them into
a single results.csv file.

Usage:
    python parse_logs.py --log-dir ./logs --output results.csv

Expected log line formats (any of the following are handled):
    [Day 2 05:00] morning | Morale: 71.0 | Unrest: 9.0 | Food: 58.5 | Water: 49.1 | Stories: 1
    [Day 2 05:00] morning | Morale: 71.0 | Unrest: 9.0 | Food: 58.5
    Day=2, Hour=5, Phase=morning, Morale=71.0, Unrest=9.0, Food=58.5

If your logs use a different format, add a pattern to PATTERNS below.
The parser tries all patterns in order and uses the first match per line.
"""

import argparse
import csv
import glob
import os
import re
import sys
from pathlib import Path


# ---------------------------------------------------------------------------
# Pattern library — add new patterns here as needed
# Each pattern must define the named groups day, hour, phase, morale, unrest,
# food; water and stories are optional.
# ---------------------------------------------------------------------------
PATTERNS = [
    # [Day 2 05:00] morning | Morale: 71.0 | Unrest: 9.0 | Food: 58.5 | Water: 49.1 | Stories: 1
    re.compile(
        r"\[Day\s+(?P<day>\d+)\s+(?P<hour>\d{1,2}):00\]\s+(?P<phase>[a-z]+)"
        r"\s*\|\s*Morale:\s*(?P<morale>[\d.]+)"
        r"\s*\|\s*Unrest:\s*(?P<unrest>[\d.]+)"
        r"\s*\|\s*Food:\s*(?P<food>[\d.]+)"
        r"(?:\s*\|\s*Water:\s*(?P<water>[\d.]+))?"
        r"(?:\s*\|\s*Stories:\s*(?P<stories>\d+))?",
        re.IGNORECASE,
    ),
    # Day=2, Hour=5, Phase=morning, Morale=71.0, Unrest=9.0, Food=58.5
    re.compile(
        r"Day[=\s]+(?P<day>\d+)"
        r".*?Hour[=\s]+(?P<hour>\d+)"
        r".*?Phase[=\s]+(?P<phase>[a-z]+)"
        r".*?Morale[=\s]+(?P<morale>[\d.]+)"
        r".*?Unrest[=\s]+(?P<unrest>[\d.]+)"
        r".*?Food[=\s]+(?P<food>[\d.]+)"
        r"(?:.*?Water[=\s]+(?P<water>[\d.]+))?"
        r"(?:.*?Stories[=\s]+(?P<stories>\d+))?",
        re.IGNORECASE,
    ),
]

OUTPUT_FIELDS = [
    "run_id", "tick", "day", "hour", "phase",
    "morale", "unrest", "food", "water", "stories",
]


def extract_run_id(filepath: str) -> str:
    """Derive a run identifier from the filename.

    Handles both formats:
      - Date-stamped:  run_20260227_054559.txt  → '20260227_054559'
      - Numeric:       run_042.txt              → '042'
      - Fallback:      anything_else.txt        → stem as-is
    """
    stem = Path(filepath).stem
    m = re.match(r"run_(\d{8}_\d{6})$", stem)
    if m:
        return m.group(1)
    m2 = re.match(r"run_(\d+)$", stem)
    if m2:
        return m2.group(1)
    if stem.startswith("run_"):
        return stem[4:]
    return stem


def parse_line(line: str) -> dict | None:
    """Attempt to match a log line against all known patterns. Returns a dict or None."""
    for pattern in PATTERNS:
        m = pattern.search(line)
        if m:
            water = m.group("water")
            stories = m.group("stories")
            return {
                "day":     int(m.group("day")),
                "hour":    int(m.group("hour")),
                "phase":   m.group("phase").lower(),
                "morale":  float(m.group("morale")),
                "unrest":  float(m.group("unrest")),
                "food":    float(m.group("food")),
                "water":   float(water) if water is not None else None,
                "stories": int(stories) if stories is not None else 0,
            }
    return None


def parse_file(filepath) -> list[dict]:
    """Parse a single log file, returning one dict per summary line.

    Rows are numbered with a 1-based "tick" in file order.
    run_id is NOT attached here — callers (e.g. main) are responsible for that.
    """
    rows = []
    unmatched_count = 0
    with open(filepath, "r", encoding="utf-8", errors="replace") as fh:
        for line in fh:
            parsed = parse_line(line)
            if parsed:
                rows.append({"tick": len(rows) + 1, **parsed})
            else:
                lcase = line.lower()
                if "morale" in lcase and "unrest" in lcase:
                    unmatched_count += 1
    if unmatched_count:
        print(f"WARNING: {unmatched_count} data-like lines in '{Path(filepath).name}' did not match any pattern.")
    return rows


def main():
    parser = argparse.ArgumentParser(
        description="Parse Agent City run_*.txt logs into results.csv"
    )
    parser.add_argument(
        "--log-dir", default="logs", help="Directory containing run_*.txt files (default: logs)"
    )
    parser.add_argument(
        "--output", default="results.csv", help="Output CSV path (default: results.csv)"
    )
    parser.add_argument(
        "--pattern", default="run_*.txt",
        help="Glob pattern for log files (default: run_*.txt). "
             "Matches both run_20260227_054559.txt and run_042.txt style names."
    )
    parser.add_argument(
        "--sample", action="store_true",
        help="Print the first 5 parsed rows from each file for verification"
    )
    args = parser.parse_args()

    log_glob = os.path.join(args.log_dir, args.pattern)
    log_files = sorted(glob.glob(log_glob))

    if not log_files:
        print(f"ERROR: No files found matching '{log_glob}'")
        sys.exit(1)

    print(f"Found {len(log_files)} log file(s) in '{args.log_dir}'")

    all_rows = []
    for filepath in log_files:
        run_id = extract_run_id(filepath)
        rows = parse_file(filepath)
        print(f"  {Path(filepath).name}: {len(rows)} ticks parsed")
        if args.sample and rows:
            for r in rows[:5]:
                print(f"    {r}")
        for row in rows:
            all_rows.append({"run_id": run_id, **row})

    if not all_rows:
        print(
            "\nERROR: No data rows were extracted. Check that your log format matches "
            "one of the patterns in PATTERNS, or add a new pattern."
        )
        sys.exit(1)

    # Sort by run_id then tick for readability
    all_rows.sort(key=lambda r: (r["run_id"], r["tick"]))

    output_path = Path(args.output)
    with open(output_path, "w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=OUTPUT_FIELDS)
        writer.writeheader()
        writer.writerows(all_rows)

    print(f"\nDone. {len(all_rows)} total rows written to '{output_path}'")
    print(f"Columns: {', '.join(OUTPUT_FIELDS)}")


if __name__ == "__main__":
    main()
