#!/usr/bin/env python3
"""AsyncAPI Generator - Entry point."""
import sys
import os

# Allow running from a checkout without installing
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from asyncapi_gen.cli.commands import cli


if __name__ == "__main__":
    cli()
