#!/usr/bin/env python
"""CLI for AI Digest."""

from ai_digest.cli import main

if __name__ == "__main__":
    main()
