"""Command line interface (python -m datasphere.cli)."""
