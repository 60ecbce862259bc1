"""Data models for nuke runs: filter rules, results, operations and account resources."""
