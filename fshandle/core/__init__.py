# fshandle/core/__init__.py

"""
Directory handle: navigation, listing and the composition root
"""
from .handle import FsHandle
from .listing import list_directory
from .navigator import PathNavigator

__all__ = [
    'FsHandle',
    'list_directory',
    'PathNavigator',
]
