"""coSPEC nodes CLI entrypoint."""

from __future__ import annotations

from cospec_nodes.cli import app

if __name__ == "__main__":
    app()
