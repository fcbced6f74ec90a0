"""
Entry point for the flight simulator.

Usage (from repo root):

    pip install -e .
    python -m flight_sim.run_sim --raw
    python -m flight_sim.run_sim --frontend viewer --world room
"""

from __future__ import annotations

from .app.main import main

if __name__ == "__main__":
    main()
