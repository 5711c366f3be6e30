import subprocess
import sys


def test_cli_help() -> None:
    cp = subprocess.run(
        [sys.executable, "-m", "readloc", "--help"],
        check=True,
        capture_output=True,
        text=True,
    )
    assert "readloc" in cp.stdout.lower()
    assert "resolve" in cp.stdout
