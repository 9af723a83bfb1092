"""
Command Line Interface for codemorph.
"""
