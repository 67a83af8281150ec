"""Ejecuta la CLI desde el checkout: `python main.py retrieve -d ./metadata`."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from cli.main import run  # noqa: E402

if __name__ == "__main__":
    run()
