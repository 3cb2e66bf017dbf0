"""Command-line interface for schoolbooks."""
