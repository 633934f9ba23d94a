# -*- coding: utf-8 -*-
"""Functions to draw vector and raster datasets as maps and save them as image files."""

import logging
import os

import matplotlib.pyplot as plt
import numpy as np
from rasterio.plot import plotting_extent

from ..config import get_default_config
from ..core.exceptions import DestinationExists, UnsupportedFormat

logger = logging.getLogger(__name__)

FIGURE_FORMATS = (".png", ".jpg", ".jpeg", ".svg", ".pdf", ".tif", ".tiff")


def _normalize(band):
    band = band.astype("float64")
    finite = band[np.isfinite(band)]
    if finite.size == 0:
        return np.zeros_like(band)
    low, high = finite.min(), finite.max()
    return np.clip((band - low) / (high - low + 1e-10), 0, 1)


def plot_vector(dataset, column=None, title=None, figsize=None, cmap="viridis", ax=None, config=None, **kwargs):
    """Plot a vector dataset, optionally colored by an attribute; ``figsize`` defaults to ``config.figsize``."""
    if not dataset.has_geometry:
        raise ValueError(f"Dataset '{dataset.name}' has no geometry column to plot")
    if column is not None and column not in dataset.columns:
        raise ValueError(f"Column '{column}' not found in dataset '{dataset.name}'")

    if ax is None:
        fig, ax = plt.subplots(figsize=figsize or (config or get_default_config()).figsize)
    else:
        fig = ax.figure

    dataset.objects.plot(column=column, cmap=cmap if column else None, ax=ax, legend=column is not None, **kwargs)

    if title:
        ax.set_title(title)
    elif column:
        ax.set_title(f"{dataset.name}: {column}")
    else:
        ax.set_title(dataset.name)

    ax.grid(alpha=0.3)
    return fig


def plot_raster(dataset, band=1, rgb_bands=None, title=None, figsize=None, cmap="viridis", ax=None, config=None):
    """Plot one raster band, or an RGB composite of three bands.

    Parameters:
    -----------
    dataset : RasterDataset
        Raster to draw
    band : int
        1-based band to draw when ``rgb_bands`` is not given
    rgb_bands : tuple of int, optional
        1-based (red, green, blue) band indices, e.g. (3, 2, 1)
    title : str, optional
        Plot title
    figsize : tuple, optional
        Figure size; defaults to the configured size
    cmap : str
        Colormap for single-band plots
    config : Config, optional
        Settings to take the default figure size from

    Returns:
    --------
    fig : matplotlib.figure.Figure
        Figure object
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize or (config or get_default_config()).figsize)
    else:
        fig = ax.figure

    extent = plotting_extent(dataset.data[0], dataset.transform)

    if rgb_bands is not None:
        channels = [dataset.band(index).data[0] for index in rgb_bands]
        rgb = np.stack([_normalize(channel) for channel in channels], axis=2)
        ax.imshow(rgb, extent=extent)
        ax.set_title(title or f"RGB composite {tuple(rgb_bands)}")
    else:
        single = dataset.band(band)
        values = single.data[0].astype("float64")
        if single.nodata is not None:
            values = np.where(values == single.nodata, np.nan, values)
        image = ax.imshow(values, cmap=cmap, extent=extent)
        fig.colorbar(image, ax=ax, shrink=0.8, label=single.band_names[0])
        ax.set_title(title or f"Band {band}")

    ax.grid(alpha=0.3)
    return fig


def save_figure(fig, destination, dpi=None, overwrite=False, config=None):
    """Render a figure to an image file.

    Parameters:
    -----------
    fig : matplotlib.figure.Figure
        Figure to save
    destination : str or os.PathLike
        Output path; the extension picks the format (png, jpg, svg, pdf, tif)
    dpi : int, optional
        Resolution; defaults to the configured dpi
    overwrite : bool
        Replace an existing file at ``destination``
    config : Config, optional
        Settings to take the default dpi from

    Returns:
    --------
    destination : str
    """
    destination = os.fspath(destination)
    extension = os.path.splitext(destination)[1].lower()
    if extension not in FIGURE_FORMATS:
        raise UnsupportedFormat(
            "save_figure", {"destination": destination}, f"figure formats are: {', '.join(FIGURE_FORMATS)}"
        )
    if os.path.exists(destination) and not overwrite:
        raise DestinationExists("save_figure", {"destination": destination}, "pass overwrite=True to replace it")

    parent = os.path.dirname(destination)
    if parent:
        os.makedirs(parent, exist_ok=True)

    fig.savefig(destination, dpi=dpi or (config or get_default_config()).default_dpi, bbox_inches="tight")
    plt.close(fig)
    logger.info("Saved figure to %s", destination)
    return destination
