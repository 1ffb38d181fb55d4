"""HTTP layer for the teaching planner."""
