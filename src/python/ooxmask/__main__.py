#!/usr/bin/env python3
"""
Entry point for running ooxmask as a module with python3 -m ooxmask
"""

from .cli import main

if __name__ == "__main__":
    main()
