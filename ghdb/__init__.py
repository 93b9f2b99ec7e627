"""
ghdb - Local snapshot of GitHub repositories and open pull requests.

A CLI tool that:
1. Syncs repositories and open PRs for configured users/orgs into a local cache
2. Browses that cache in an interactive terminal finder
3. Opens the selected repository or PR in the browser

Usage:
    ghdb init             # Write a sample config file
    ghdb sync             # Fetch a fresh snapshot from GitHub
    ghdb find             # Browse the cached snapshot
    ghdb status           # Show what the cache holds
"""

__version__ = "0.1.0"
__author__ = "ghdb"
