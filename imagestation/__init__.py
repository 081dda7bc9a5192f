"""
ImageStation: a browser front end for image compression, background removal,
recognition and text-to-image generation backed by vendor APIs.
"""

__version__ = "1.0.0"
