"""Command line interface for Claude Web Proxy."""
