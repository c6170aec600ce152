"""
Type aliases for matrixpool.

This module defines type aliases used throughout the library
for better type safety and code clarity.
"""

from typing import NewType

# Core type aliases
ElementCount = NewType('ElementCount', int)
ByteSize = NewType('ByteSize', int)
ShellID = NewType('ShellID', int)
