#!/usr/bin/env python3
"""
DEPWATCH - npm Supply-Chain Watch

Main entry point for running the CLI from a source checkout.

Usage:
    python main.py run --config .config
    python main.py once --lookback 24
"""

from depwatch.cli import cli


if __name__ == '__main__':
    cli()
