"""
Entry point for running oncall_planner as a module.

This file enables:
- `python -m oncall_planner`
- `uv run python -m oncall_planner`
"""

from __future__ import annotations

from oncall_planner import main

if __name__ == "__main__":
    main()
