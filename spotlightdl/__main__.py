"""
__main__.py

This file adds support for running spotlightdl as a python module instead of invoking the "spotlightdl"
command line entrypoint, e.g. python -m spotlightdl --outdir wallpapers
"""


from spotlightdl.cli import main


if __name__ == "__main__":
    main()
