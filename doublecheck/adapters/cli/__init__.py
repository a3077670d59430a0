"""Command-line interface adapters.

Provides CLI commands for managing the baseline:
- list: Show baselined findings
- details: Show one finding and its neighbours
- accept: Suppress a finding in later runs
- reopen: Report an accepted finding again
- stats: Baseline statistics
"""
