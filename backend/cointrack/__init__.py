"""cointrack: crypto market sync and portfolio valuation engine."""
