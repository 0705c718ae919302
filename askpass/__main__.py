"""Entry point for ``python -m askpass``.

Nothing may be written to stdout before the CLI runs: in the default path
stdout carries only the password that sudo reads.
"""

from __future__ import annotations

# Use absolute import to remain robust when executed as a standalone script
from askpass.main import main  # noqa: I100,I202

if __name__ == "__main__":
    main()
