"""Integration tests for the command line adapter."""

from __future__ import annotations

import io
import os
import signal
import subprocess
import sys
from pathlib import Path

import pytest

import flatdb
from flatdb.adapters.inbound.cli import (
    build_parser,
    main,
    parse_pairs,
    run,
    terminate_as_exit,
)
from flatdb.domain.errors import BadValueError
from flatdb.domain.services import lock_path_for
from flatdb.infrastructure.config import Config
from flatdb.ports.inbound import TableOperations


class CliRunner:
    """Runs main() with captured output streams."""

    def __init__(self, config: Config) -> None:
        self.config = config
        self.out = io.StringIO()
        self.err = io.StringIO()

    def __call__(self, *argv: str) -> int:
        self.out = io.StringIO()
        self.err = io.StringIO()
        return main(list(argv), config=self.config, out=self.out, err=self.err)

    @property
    def lines(self) -> list[str]:
        return self.out.getvalue().splitlines()


@pytest.fixture
def cli(test_config: Config) -> CliRunner:
    """Provide a CLI runner bound to the test config."""
    return CliRunner(test_config)


@pytest.fixture
def table(temp_dir: Path, cli: CliRunner) -> str:
    """Create a users table through the CLI."""
    path = str(temp_dir / "users.tsv")
    assert cli("create", path, "id", "name", "email", "age") == 0
    assert cli("insert", path, "id=1", "name=Bo", "email=bo@test.com", "age=41") == 0
    assert cli("insert", path, "id=2", "name=Spencer", "email=sp@test.com", "age=12") == 0
    return path


@pytest.mark.unit
class TestParsePairs:
    """Tests for parse_pairs."""

    def test_pairs(self) -> None:
        """Only the first = separates key and value."""
        assert parse_pairs(["id=1", "expr=a=b", "empty="]) == {
            "id": "1",
            "expr": "a=b",
            "empty": "",
        }

    def test_bad_pair(self) -> None:
        """Arguments without = are rejected."""
        with pytest.raises(BadValueError, match="bad pair"):
            parse_pairs(["id"])


@pytest.mark.integration
class TestCli:
    """Test cases for flatdb commands."""

    def test_select_prints_tsv(self, cli: CliRunner, table: str) -> None:
        """select prints the header then rows, tab separated."""
        assert cli("select", table) == 0
        assert cli.lines == [
            "id\tname\temail\tage",
            "1\tBo\tbo@test.com\t41",
            "2\tSpencer\tsp@test.com\t12",
        ]

    def test_select_cols_where(self, cli: CliRunner, table: str) -> None:
        """--cols and --where narrow the output."""
        assert cli("select", table, "--cols=email", "--where=name~/^S/") == 0
        assert cli.lines == ["email", "sp@test.com"]

    def test_update_and_delete(self, cli: CliRunner, table: str) -> None:
        """Mutations print nothing on stdout."""
        assert cli("update", table, "--set=age=13", "--where=name=Spencer") == 0
        assert cli.out.getvalue() == ""
        assert cli("delete", table, "--where=age=41") == 0

        cli("select", table, "--cols", "id,age")
        assert cli.lines == ["id\tage", "2\t13"]

    @pytest.mark.parametrize(
        "argv,code",
        [
            (("create", "{table}", "x"), 3),
            (("select", "{missing}"), 4),
            (("select", "{table}", "--cols=phone"), 5),
            (("select", "{table}", "--where=nothing"), 6),
            (("insert", "{table}", "name"), 7),
            (("insert", "{table}", "name=a\tb"), 7),
            (("delete", "{table}", "--where=id"), 6),
        ],
    )
    def test_exit_codes(
        self, cli: CliRunner, table: str, temp_dir: Path, argv, code: int
    ) -> None:
        """Each error kind has its own exit status and a stderr message."""
        missing = str(temp_dir / "missing.tsv")
        args = [a.format(table=table, missing=missing) for a in argv]

        assert cli(*args) == code
        assert cli.err.getvalue().startswith("flatdb: ")
        assert cli.out.getvalue() == ""

    def test_lock_timeout_exit_code(self, cli: CliRunner, table: str) -> None:
        """A held lock fails the write with its exit status."""
        lock_path_for(table).mkdir()
        try:
            assert cli("insert", table, "id=3") == 8
        finally:
            lock_path_for(table).rmdir()
        assert "timeout acquiring" in cli.err.getvalue()

    def test_usage_error(self, cli: CliRunner, table: str) -> None:
        """Argument errors exit with status 2."""
        with pytest.raises(SystemExit) as exc_info:
            cli("delete", table)
        assert exc_info.value.code == 2

    def test_unknown_command(self, cli: CliRunner) -> None:
        """Unknown subcommands are usage errors."""
        with pytest.raises(SystemExit) as exc_info:
            cli("drop", "t.tsv")
        assert exc_info.value.code == 2


@pytest.mark.unit
class TestParser:
    """Tests for build_parser."""

    def test_select_defaults(self) -> None:
        """select projects every column and has no filter by default."""
        args = build_parser().parse_args(["select", "t.tsv"])
        assert args.cols == "*"
        assert args.where is None

    def test_update_set(self) -> None:
        """--set is stored as the assignment."""
        args = build_parser().parse_args(["update", "t.tsv", "--set=a=b", "--where=id=1"])
        assert args.assignment == "a=b"
        assert args.where == "id=1"


@pytest.mark.unit
class TestTerminateAsExit:
    """Tests for terminate_as_exit."""

    def test_handler_installed_and_restored(self) -> None:
        """SIGTERM raises SystemExit inside the block only."""
        previous = signal.getsignal(signal.SIGTERM)

        with terminate_as_exit():
            handler = signal.getsignal(signal.SIGTERM)
            with pytest.raises(SystemExit) as exc_info:
                handler(signal.SIGTERM, None)
            assert exc_info.value.code == 128 + signal.SIGTERM

        assert signal.getsignal(signal.SIGTERM) == previous


class RecordingOperations:
    """TableOperations implementation that records calls."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []

    def create(self, path, columns):
        self.calls.append(("create", path, list(columns)))

    def insert(self, path, values):
        self.calls.append(("insert", path, dict(values)))

    def select(self, path, columns="*", where=None):
        self.calls.append(("select", path, columns, where))
        return iter([["id"], ["1"]])

    def update(self, path, assignment, where):
        self.calls.append(("update", path, assignment, where))

    def delete(self, path, where):
        self.calls.append(("delete", path, where))


@pytest.mark.unit
class TestRun:
    """Tests for run() against any TableOperations implementation."""

    @pytest.mark.parametrize(
        "argv,call",
        [
            (["create", "t.tsv", "a", "b"], ("create", "t.tsv", ["a", "b"])),
            (["insert", "t.tsv", "a=1"], ("insert", "t.tsv", {"a": "1"})),
            (["select", "t.tsv", "--where=a=1"], ("select", "t.tsv", "*", "a=1")),
            (["update", "t.tsv", "--set=a=2", "--where=a=1"], ("update", "t.tsv", "a=2", "a=1")),
            (["delete", "t.tsv", "--where=a~x"], ("delete", "t.tsv", "a~x")),
        ],
    )
    def test_dispatch(self, argv: list[str], call: tuple) -> None:
        """Each subcommand maps onto one operation."""
        operations: TableOperations = RecordingOperations()
        out = io.StringIO()

        run(build_parser().parse_args(argv), operations, out)

        assert operations.calls == [call]

    def test_select_output(self) -> None:
        """select rows are written tab joined, one per line."""
        out = io.StringIO()

        run(build_parser().parse_args(["select", "t.tsv"]), RecordingOperations(), out)

        assert out.getvalue() == "id\n1\n"


@pytest.mark.integration
class TestUnencodableArguments:
    """Arguments that are not valid in the table encoding."""

    def test_surrogate_value_exit_code(self, cli: CliRunner, table: str) -> None:
        """Undecodable argv bytes are a bad value, not a traceback."""
        before = Path(table).read_bytes()

        assert cli("insert", table, "id=3", "name=\udcff") == 7
        assert "not valid utf-8" in cli.err.getvalue()
        assert cli("update", table, "--set=name=\udcff", "--where=id=1") == 7
        assert Path(table).read_bytes() == before


HOLD_LOCK_SCRIPT = """
import sys
import time

from flatdb.adapters.inbound.cli import main
from flatdb.adapters.outbound import AtomicFileCommitter

def slow_commit(self, path, lines):
    print("locked", flush=True)
    time.sleep(60)

AtomicFileCommitter.commit_rewrite = slow_commit
sys.exit(main(sys.argv[1:]))
"""


@pytest.mark.integration
@pytest.mark.slow
@pytest.mark.skipif(not hasattr(signal, "SIGTERM") or os.name != "posix", reason="POSIX signals")
class TestTerminatedWriter:
    """A writer killed with SIGTERM while holding the lock."""

    def test_sigterm_releases_lock(self, table: str) -> None:
        """The lock directory is removed and the table is left untouched."""
        before = Path(table).read_bytes()
        src_dir = Path(flatdb.__file__).resolve().parents[1]
        env = dict(os.environ)
        env["PYTHONPATH"] = os.pathsep.join(
            p for p in (str(src_dir), env.get("PYTHONPATH")) if p
        )
        env["FLATDB_STORAGE__FSYNC"] = "false"

        proc = subprocess.Popen(
            [sys.executable, "-c", HOLD_LOCK_SCRIPT,
             "update", table, "--set=age=1", "--where=id=1"],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            env=env,
        )
        try:
            assert proc.stdout.readline().strip() == "locked"
            assert lock_path_for(table).is_dir()

            proc.send_signal(signal.SIGTERM)
            proc.communicate(timeout=30)
        finally:
            if proc.poll() is None:
                proc.kill()
                proc.communicate()

        assert proc.returncode == 128 + signal.SIGTERM
        assert not lock_path_for(table).exists()
        assert Path(table).read_bytes() == before
        assert [p for p in Path(table).parent.iterdir() if p.name.endswith(".tmp")] == []
