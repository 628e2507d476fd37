#!/usr/bin/env python3
"""
Report commit and pull request activity across every installation of a GitHub App.

Equivalent to the ``ghactivity`` console script.
"""
from ghactivity.cli import run

if __name__ == "__main__":
    run()
