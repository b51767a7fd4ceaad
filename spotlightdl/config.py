"""
spotlightdl Configuration Management

This file handles loading configuration variables for spotlightdl. Configuration is optional:
without a config file, wallpapers go to the current directory and the locale is derived from
the environment ($LANG). Values given on the command line take precedence over the config file.

The configuration file is "config.json" and is read from the directory named by the
SPOTLIGHTDL_CONFIG_DIR environment variable, or ~/.config/spotlightdl/config.json otherwise.
A .env file in the working directory is loaded first, so SPOTLIGHTDL_CONFIG_DIR and LANG may be
set there as well. Raise a SpotlightConfigError for any issues that arise in processing or
retrieving these configuration variables.

Example config.json:

    {
        "OUTPUT_DIR": "~/Pictures/spotlight",
        "LOCALE": "en-GB"
    }
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_LOCALE = "en-US"
DEFAULT_COUNTRY = "US"


class SpotlightConfigError(Exception):
    """Raise when an issue occurs with handling spotlightdl configuration."""

    pass


@dataclass
class SpotlightConfig:
    """
    Configuration variables for spotlightdl. Instantiated from the keyword arguments of a
    deserialized (flat) json object so that application code never touches dictionary keys.

    LOCALE may be left empty, in which case it is resolved from the environment at run time.
    """

    OUTPUT_DIR: Path = Path(".")
    LOCALE: str = ""

    def __post_init__(self):
        """
        JSON cannot deserialize a str into a Path, so convert here. Called automatically by the
        generated __init__.
        """

        self.OUTPUT_DIR = Path(self.OUTPUT_DIR).expanduser()
        self.LOCALE = str(self.LOCALE or "").strip()


def config_file() -> Path:
    """Location of config.json, honoring SPOTLIGHTDL_CONFIG_DIR."""

    try:
        return Path(os.environ["SPOTLIGHTDL_CONFIG_DIR"]).expanduser() / "config.json"

    except KeyError:
        return Path("~/.config/spotlightdl/config.json").expanduser()


def load_config() -> SpotlightConfig:
    """
    Load config.json and instantiate variables as a SpotlightConfig dataclass.
    Raise SpotlightConfigError if the file can't be found or isn't valid.
    """

    config_src = config_file()

    try:
        with config_src.open("r") as file:
            from_json = json.loads(file.read())

    except json.JSONDecodeError as error:
        raise SpotlightConfigError(f"There was an issue reading the config: {error}")

    except FileNotFoundError as error:
        raise SpotlightConfigError(f"There was an issue opening the config: {error}")

    if not isinstance(from_json, dict):
        raise SpotlightConfigError(f"{config_src} should contain a JSON object.")

    try:
        return SpotlightConfig(**from_json)

    except TypeError as error:
        raise SpotlightConfigError(f"Unknown setting in {config_src}: {error}")


def init() -> SpotlightConfig:
    """
    Initialize spotlightdl configuration. A missing config file is fine and yields defaults,
    a broken one is an error.
    """

    load_dotenv()

    if not config_file().exists():
        return SpotlightConfig()

    return load_config()


def resolve_locale(spec: str = "", lang: Optional[str] = None) -> tuple[str, str]:
    """
    Work out the (locale, country) pair to send to the selection API.

    An explicit spec like "en-GB" wins. Otherwise fall back to the LANG environment
    variable (e.g. "en_GB.UTF-8"), and finally to en-US.
    """

    if spec:
        parts = spec.strip().split("-")
        if len(parts) == 2 and all(parts):
            return spec.strip(), parts[1].upper()

    if lang is None:
        lang = os.environ.get("LANG", "")

    # en_GB.UTF-8@euro -> en-GB
    lang = lang.split(".", 1)[0].split("@", 1)[0].replace("_", "-").strip()

    if lang in ("", "C", "POSIX"):
        return DEFAULT_LOCALE, DEFAULT_COUNTRY

    parts = lang.split("-")
    if len(parts) == 2 and all(parts):
        return lang, parts[1].upper()

    return lang, DEFAULT_COUNTRY
