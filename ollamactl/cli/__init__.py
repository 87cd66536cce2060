"""Command-line interface for ollamactl."""
