"""Replay the battle-session regression scenarios from the command line.

Usage:
    python tests/run_regression.py                # every scenario
    python tests/run_regression.py pvp golem      # scenarios whose name contains a word
"""

from __future__ import annotations

import sys

from regression_suite import SCENARIOS, run_all


def main(argv) -> int:
    words = [w.lower() for w in argv]
    selected = [s for s in SCENARIOS if not words or any(w in s.__name__ for w in words)]
    if not selected:
        print(f"No scenario matches {' '.join(argv)!r}.")
        return 2

    results = run_all(selected)
    for name, ok, reason in results:
        label = name[len("scenario_"):] if name.startswith("scenario_") else name
        print(f"{'ok  ' if ok else 'FAIL'} {label}" + ("" if ok else f": {reason}"))

    failed = sum(1 for _, ok, _ in results if not ok)
    print(f"{len(results) - failed}/{len(results)} battle scenarios passed.")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
