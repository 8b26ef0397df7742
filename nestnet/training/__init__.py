"""Training loops, error metrics and config-driven pipelines."""
