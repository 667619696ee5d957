import json
from collections import Counter
from pathlib import Path
from typing import Optional

import typer

from image_folder_classifier.config import RunConfig, load_config
from image_folder_classifier.dataset_builder import load_images_from_directory
from image_folder_classifier.lib import set_log_level, setup_logger
from image_folder_classifier.runner import run as run_pipeline

app = typer.Typer(help="Transfer-learning image classifier for labeled image folders")

logger = setup_logger(__name__)


@app.command()
def run(
    config_file: Optional[Path] = typer.Option(
        None, help="Path to the run configuration file (YAML/JSON)"
    ),
    assets_dir: Optional[str] = typer.Option(
        None, help="Root folder with the labeled images"
    ),
    workspace_dir: Optional[str] = typer.Option(
        None, help="Folder for cached bottleneck values and checkpoints"
    ),
    folder_labels: Optional[bool] = typer.Option(
        None,
        "--folder-labels/--filename-labels",
        help="Label images by parent folder name or by filename prefix",
    ),
    skip_unreadable: Optional[bool] = typer.Option(
        None,
        "--skip-unreadable/--fail-on-unreadable",
        help="Drop unreadable images with a warning instead of failing",
    ),
    seed: Optional[int] = typer.Option(None, help="Random seed for shuffling and splitting"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """
    Train a classifier on the image folder and report predictions for the test set.
    """
    if verbose:
        set_log_level("DEBUG")

    try:
        config = load_config(config_file) if config_file else RunConfig()

        # Command line options win over the configuration file
        if assets_dir is not None:
            config.dataset.assets_dir = assets_dir
        if workspace_dir is not None:
            config.workspace_dir = workspace_dir
        if folder_labels is not None:
            config.dataset.use_folder_name_as_label = folder_labels
        if skip_unreadable is not None:
            config.dataset.skip_unreadable_images = skip_unreadable
        if seed is not None:
            config.dataset.seed = seed
            config.training.seed = seed

        results = run_pipeline(config)
        logger.debug(json.dumps(results["classification_report"], indent=4))
    except Exception as e:
        logger.critical(e, exc_info=True)
        raise typer.Exit(code=1)


@app.command()
def scan(
    assets_dir: str = typer.Argument(..., help="Root folder with the labeled images"),
    folder_labels: bool = typer.Option(
        True,
        "--folder-labels/--filename-labels",
        help="Label images by parent folder name or by filename prefix",
    ),
):
    """
    List the labels found in an image folder and how many images each has.
    """
    try:
        counts = Counter(
            record.label
            for record in load_images_from_directory(
                assets_dir, use_folder_name_as_label=folder_labels
            )
        )
    except Exception as e:
        logger.critical(e, exc_info=True)
        raise typer.Exit(code=1)

    if not counts:
        typer.echo(f"No .jpg or .png images found in {assets_dir}")
        raise typer.Exit(code=1)

    for label, count in sorted(counts.items()):
        typer.echo(f"{label}: {count} images")
    typer.echo(f"Total: {sum(counts.values())} images, {len(counts)} labels")


if __name__ == "__main__":
    app()
