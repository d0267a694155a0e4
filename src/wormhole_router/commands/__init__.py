"""
Wormhole Router Commands

Command implementations for the CLI.
Each module handles a logical group of related commands.
"""
