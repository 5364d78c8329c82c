"""
Virtual ATM: account registration, PIN login and atomic money movements
over a relational store, driven from the command line.
"""

__version__ = "1.0.0"
