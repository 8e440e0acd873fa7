"""Tests for running external programs."""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from pagesmith_pkg.errors import PipeError
from pagesmith_pkg.pipe import ArgumentBuilder, read_pipe


def python_command(code):
    return [sys.executable, '-c', code]


class TestReadPipe:
    """Test cases for read_pipe."""

    def test_captures_stdout(self):
        output = read_pipe(python_command('print("hello")'))
        assert output.strip() == b'hello'

    def test_preserves_exact_bytes(self):
        output = read_pipe(python_command('import sys; sys.stdout.buffer.write(b"a\\x00b\\xff")'))
        assert output == b'a\x00b\xff'
        assert len(output) == 4

    def test_large_output(self):
        output = read_pipe(python_command('import sys; sys.stdout.write("x" * 200000)'))
        assert len(output) == 200000

    def test_child_gets_no_input(self):
        output = read_pipe(python_command('import sys; sys.stdout.write(repr(sys.stdin.read()))'))
        assert output == b"''"

    def test_nonzero_exit_raises(self):
        with pytest.raises(PipeError) as excinfo:
            read_pipe(python_command('import sys; sys.exit(3)'))
        assert excinfo.value.returncode == 3
        assert 'terminated unsuccessfully' in str(excinfo.value)

    def test_missing_program_raises(self):
        with pytest.raises(PipeError) as excinfo:
            read_pipe(['pagesmith-no-such-program-xyz', 'arg'])
        assert excinfo.value.returncode is None
        assert excinfo.value.command == ['pagesmith-no-such-program-xyz', 'arg']

    def test_empty_arguments_raise(self):
        with pytest.raises(PipeError):
            read_pipe([])

    @pytest.mark.skipif(not os.path.isdir('/proc/self/fd'), reason='needs /proc')
    def test_repeated_calls_do_not_leak_descriptors(self):
        read_pipe(python_command('pass'))
        before = len(os.listdir('/proc/self/fd'))
        for _ in range(30):
            read_pipe(python_command('print("x")'))
        with pytest.raises(PipeError):
            read_pipe(python_command('import sys; sys.exit(1)'))
        after = len(os.listdir('/proc/self/fd'))
        assert after == before


class TestArgumentBuilder:
    """Test cases for ArgumentBuilder."""

    def test_builds_in_order(self):
        args = ArgumentBuilder('sed').add('-e', 's|a|b|g').extend(['-e', 's|c|d|g']).add('file').build()
        assert args == ['sed', '-e', 's|a|b|g', '-e', 's|c|d|g', 'file']

    def test_build_returns_copy(self):
        builder = ArgumentBuilder('cat')
        args = builder.build()
        args.append('mutated')
        assert builder.build() == ['cat']

    def test_values_are_strings(self):
        assert ArgumentBuilder('echo').add(2015).build() == ['echo', '2015']
