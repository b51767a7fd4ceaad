"""
Poll Loop

The selection API hands out a small rotating pool of images, a few per request. To collect
everything on offer we keep asking until the API stops surprising us: the run ends once
MAX_EMPTY_ROUNDS consecutive rounds have produced no new download.

Each round:

    fetch batch -> skip urls seen this run -> skip files already on disk -> download the rest

A failing fetch ends the run (the error propagates to the caller). A failing download only
skips that one image.

All run state lives in a PollState created per call to poll(), and the collaborators (fetch,
download, sleep) are parameters so tests can swap in stubs and a fake clock.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from spotlightdl.spotlight_handler import fetch_images
from spotlightdl.image_handler import download_image
from spotlightdl.image_handler import ImageDownloadError
from spotlightdl.cli_utils.console import describe
from spotlightdl.cli_utils.console import confirm_success
from spotlightdl.cli_utils.console import emit_path

MAX_EMPTY_ROUNDS = 50
EMPTY_ROUND_DELAY = 0.5  # seconds


class Action(Enum):
    CONTINUE = "continue"
    SLEEP_THEN_CONTINUE = "sleep_then_continue"
    STOP = "stop"


@dataclass
class PollState:
    """
    Mutable state of one run. 'seen' holds every url handled so far (downloaded or skipped)
    and only ever grows.
    """

    seen: set = field(default_factory=set)
    empty_rounds: int = 0
    total_new: int = 0
    rounds: int = 0


def next_action(
    new_in_round: int, empty_rounds: int, max_empty_rounds: int = MAX_EMPTY_ROUNDS
) -> Action:
    """
    Decide what to do after a round. empty_rounds is the count of consecutive empty rounds
    *before* this one.
    """

    if new_in_round > 0:
        return Action.CONTINUE

    if empty_rounds + 1 >= max_empty_rounds:
        return Action.STOP

    return Action.SLEEP_THEN_CONTINUE


def run_round(
    state: PollState,
    images,
    output_dir: Path,
    verbose: bool = False,
    download=download_image,
) -> int:
    """
    Process one fetched batch against the run state. Returns the number of new downloads.
    """

    new_in_round = 0

    for image in images:
        if image.url in state.seen:
            continue
        state.seen.add(image.url)

        if not image.file_name:
            continue

        dest_path = output_dir / image.file_name
        if dest_path.exists():
            if verbose:
                describe(f"skip existing: {dest_path}")
            continue

        try:
            download(image.url, dest_path)

        except ImageDownloadError as error:
            if verbose:
                describe(f"download failed: {image.url}: {error}")
            continue

        emit_path(dest_path)
        new_in_round += 1

    return new_in_round


def poll(
    output_dir,
    country: str,
    locale: str,
    verbose: bool = False,
    fetch=fetch_images,
    download=download_image,
    sleep=time.sleep,
    max_empty_rounds: int = MAX_EMPTY_ROUNDS,
) -> int:
    """
    Fetch and download new images until max_empty_rounds consecutive rounds bring nothing new.
    Returns the number of images downloaded. Fetch errors are not caught.
    """

    output_dir = Path(output_dir)
    state = PollState()

    while True:
        images = fetch(country, locale)
        state.rounds += 1

        new_in_round = run_round(
            state, images, output_dir, verbose=verbose, download=download
        )
        state.total_new += new_in_round

        action = next_action(new_in_round, state.empty_rounds, max_empty_rounds)

        if action is Action.CONTINUE:
            state.empty_rounds = 0
            continue

        state.empty_rounds += 1

        if action is Action.STOP:
            break

        sleep(EMPTY_ROUND_DELAY)

    if verbose:
        confirm_success(f"done. new={state.total_new} rounds={state.rounds}")

    return state.total_new
