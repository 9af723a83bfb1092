"""Console, logging and node rendering helpers."""
