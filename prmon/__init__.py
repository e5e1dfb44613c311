"""
prmon - Watch the GitHub pull requests assigned to and created by you.

A terminal tool that:
1. Polls GitHub on a fixed interval
2. Detects whether the assigned/created pull requests changed
3. Redraws only when something actually changed

Usage:
    prmon init          # Write a sample prmon.yml
    prmon watch         # Interactive TUI (or --headless)
    prmon list          # Print current pull requests once
"""

__version__ = "0.1.0"
__author__ = "prmon"
