# (c) 2026 (KriaetvAspie / AspieTheBard)
# Licensed under the Polyform Noncommercial License 1.0.0
"""Entry point for: python -m agent_city"""

import os
import sys


def _ensure_hash_seed() -> None:
    """Re-exec with PYTHONHASHSEED=0 when a --seed argument is present.

    String hashing is randomised per process, so set iteration order (the
    watch archetypes, for one) can differ between runs.  Fixing the hash seed
    before the interpreter starts makes a seeded run repeat exactly.

    Uses subprocess.run() rather than os.execve() so stdout/stderr are
    inherited on Windows as well.
    """
    if "--seed" not in sys.argv:
        return
    if os.environ.get("PYTHONHASHSEED") == "0":
        return
    import subprocess
    env = dict(os.environ, PYTHONHASHSEED="0")
    pkg = __package__ or "agent_city"
    result = subprocess.run([sys.executable, "-m", pkg] + sys.argv[1:], env=env)
    sys.exit(result.returncode)


_ensure_hash_seed()

from .sim import run  # noqa: E402  import must come after re-exec guard

if __name__ == "__main__":
    run()
