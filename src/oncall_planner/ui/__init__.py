"""UI package for the OnCall Planner application."""
