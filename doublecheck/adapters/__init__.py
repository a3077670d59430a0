"""External adapters for the doublecheck linter.

This package contains all external dependencies (filesystem, SQLite,
terminal and report files) and provides implementations of the core
port interfaces.

Adapter Organization:

- source/: Adapters for finding and reading files to check
- store/: Adapters for baseline persistence (SQLite)
- report/: Adapters for presenting results (stdout, markdown, JSON)
- scheduler/: Adapters for driving repeated checks (watch loop)
- cli/: Command-line baseline management commands
"""
