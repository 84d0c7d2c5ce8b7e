"""Development entrypoint for the Nemeths HTTP API."""

from __future__ import annotations

from nemeths.main import main

if __name__ == "__main__":
    main()
