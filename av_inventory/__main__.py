#!/usr/bin/env python3
"""
Command line entry point for AV Service Inventory
"""
from .cli import cli

if __name__ == "__main__":
    cli()
