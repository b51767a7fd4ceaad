"""
spotlightdl - download Windows Spotlight wallpapers to a local folder.
"""

__version__ = "0.1.0"

USER_AGENT = f"spotlightdl/{__version__}"
