"""
Dropwatch backend - watches drop folders for torrent and magnet files.
"""
__version__ = "0.1.0"
