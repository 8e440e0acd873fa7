"""
Run external programs and capture what they write to standard output.

Both the markup filter and the template substitution go through read_pipe,
once per source file and twice per rendered page, so every call must reap
its child and close its pipes before returning.
"""

import logging
import subprocess
from typing import Iterable, List, Sequence

from .errors import PipeError

logger = logging.getLogger('PageSmith')


class ArgumentBuilder:
    """Collect an ordered argument list for read_pipe."""

    def __init__(self, program: str):
        self._args = [program]

    def add(self, *values: str) -> 'ArgumentBuilder':
        self._args.extend(str(value) for value in values)
        return self

    def extend(self, values: Iterable[str]) -> 'ArgumentBuilder':
        return self.add(*values)

    def build(self) -> List[str]:
        return list(self._args)


def read_pipe(args: Sequence[str]) -> bytes:
    """
    Run a program and return everything it wrote to standard output.

    The child gets no input (stdin is the null device) and its standard
    error is passed through to ours.

    Args:
        args: Program name followed by its arguments

    Returns:
        The captured output, byte for byte

    Raises:
        PipeError: If the program cannot be started or exits non-zero
    """
    args = list(args)
    if not args:
        raise PipeError("No program given to run", command=args)

    program = args[0]
    logger.debug(f"Running {' '.join(args)}")

    try:
        result = subprocess.run(
            args,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as e:
        raise PipeError(f"Failed to run {program}: {e}", command=args) from e

    if result.returncode != 0:
        raise PipeError(
            f"Child {program} process terminated unsuccessfully (exit status {result.returncode})",
            command=args,
            returncode=result.returncode,
        )

    return result.stdout
