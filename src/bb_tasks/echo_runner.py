"""Local stand-in for the `bb` binary used by integration tests.

Prints its task name, extra argv and working directory as one JSON line, then
behaves according to the task name:

- `fail` / `fail-<code>`: exit with 1 / `<code>`
- `stderr`: also write a line to stderr
- `echo-input`: echo stdin lines back prefixed with `input: ` until EOF
- `sleep`: sleep for the seconds given as the first argument
- `chatter-<n>`: print `n` numbered lines tagged with the task name
"""

from __future__ import annotations

import json
import os
import sys
import time


def main(argv: list[str] | None = None) -> int:
    """Run the stand-in task named by the first argument."""

    args = sys.argv[1:] if argv is None else argv
    if not args:
        print("echo_runner: missing task name", file=sys.stderr)
        return 2

    task, rest = args[0], args[1:]
    print(json.dumps({"task": task, "args": rest, "cwd": os.getcwd()}), flush=True)

    if task == "stderr":
        print("to stderr", file=sys.stderr, flush=True)
    elif task == "echo-input":
        for line in sys.stdin:
            print(f"input: {line.rstrip()}", flush=True)
    elif task == "sleep":
        time.sleep(float(rest[0]) if rest else 30.0)
    elif task.startswith("chatter-"):
        for index in range(int(task.split("-", 1)[1])):
            print(f"{task} {index}", flush=True)
    elif task == "fail":
        return 1
    elif task.startswith("fail-"):
        return int(task.split("-", 1)[1])
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
