#!/usr/bin/env python3
"""
AV Service Inventory Entry Point
"""
from av_inventory.cli import cli

if __name__ == '__main__':
    cli()
