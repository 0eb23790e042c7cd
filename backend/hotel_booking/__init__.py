"""Hotel room inventory and reservation booking engine."""
