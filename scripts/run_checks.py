#!/usr/bin/env python3
"""Run repository checks: ruff, pyright, then pytest.

Exits with the first failing step's return code so CI can gate on it.
"""

from __future__ import annotations

import argparse
import os
import subprocess
import sys


def run(cmd: list[str], env: dict[str, str] | None = None) -> int:
    print("=>", " ".join(cmd))
    res = subprocess.run(cmd, check=False, env=env)
    return res.returncode


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--no-tests", action="store_true", help="Skip running pytest")
    parser.add_argument("--fix", action="store_true", help="Let ruff apply safe fixes")
    args = parser.parse_args()

    ruff_cmd = [sys.executable, "-m", "ruff", "check", "image_editor", "tests"]
    if args.fix:
        ruff_cmd.append("--fix")
    rc = run(ruff_cmd)
    if rc != 0:
        print("ruff failed")
        return rc

    # pyright may only be on PATH on Windows
    rc = run([sys.executable, "-m", "pyright"]) if sys.platform != "win32" else run(["pyright"])
    if rc != 0:
        print("pyright failed")
        return rc

    if not args.no_tests:
        env = os.environ.copy()
        env.setdefault("QT_QPA_PLATFORM", "offscreen")
        rc = run([sys.executable, "-m", "pytest", "-q"], env=env)
        if rc != 0:
            print("pytest failed")
            return rc

    print("All checks passed")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
