"""Command line interface for lazconv."""
