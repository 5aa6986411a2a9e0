"""Runtime configuration for the catalog pipeline."""
