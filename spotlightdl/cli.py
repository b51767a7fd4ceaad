"""
spotlightdl

Download Windows Spotlight wallpapers into a folder.

This module defines the entry point to the spotlightdl CLI. Options are merged with the
config file (command line wins), the output directory is created, and then the poll loop
runs until the Spotlight API stops offering new images. The path of every downloaded file
is printed to standard output, one per line, so the command composes with other tools:

    $ spotlightdl --outdir ~/Pictures/spotlight | xargs -n1 wallsy --file
"""

from pathlib import Path

import click

from spotlightdl import config
from spotlightdl.poller import poll
from spotlightdl.cli_utils.decorators import catch_errors
from spotlightdl.cli_utils.console import describe


@click.command(name="spotlightdl")
@click.option(
    "--outdir",
    "-o",
    type=click.Path(
        file_okay=False, path_type=Path
    ),  # make sure that file paths are always Path objects.
    help="Directory to save wallpapers in. Created if missing. [default: config file or .]",
)
@click.option(
    "--locale",
    "-l",
    default="",
    help="Locale like en-US. Defaults to the config file, then $LANG, then en-US.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Report skipped files, failed downloads and a final summary.",
)
@click.version_option(package_name="spotlightdl")
@catch_errors
def cli(outdir: Path, locale: str, verbose: bool):
    """
    Download Windows Spotlight wallpapers.

    Keeps asking the Spotlight API for images and saves every landscape image that isn't
    already in the output directory. Stops after 50 rounds in a row bring nothing new.
    """

    settings = config.init()

    outdir = outdir if outdir is not None else settings.OUTPUT_DIR
    outdir = Path(outdir).expanduser()

    try:
        outdir.mkdir(parents=True, exist_ok=True)

    except OSError as error:
        raise click.ClickException(f"could not create output directory {outdir}: {error}")

    locale, country = config.resolve_locale(locale or settings.LOCALE)

    if verbose:
        describe(f"saving {locale} wallpapers to {outdir}")

    poll(outdir, country=country, locale=locale, verbose=verbose)


def main():
    cli()


if __name__ == "__main__":
    main()
