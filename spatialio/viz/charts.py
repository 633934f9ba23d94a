# -*- coding: utf-8 -*-
"""Visualization functions for plotting value distributions of datasets."""

import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns

from ..config import get_default_config
from ..core.dataset import RasterDataset, VectorDataset


def plot_histogram(dataset, attribute=None, band=1, bins=20, figsize=None, by_class=None, config=None):
    """Plot a histogram of attribute values (vector) or cell values (raster).

    Parameters:
    -----------
    dataset : VectorDataset or RasterDataset
        Dataset containing data
    attribute : str, optional
        Attribute to plot; required for vector datasets
    band : int
        1-based band to plot for raster datasets
    bins : int
        Number of bins
    figsize : tuple, optional
        Figure size; defaults to ``config.figsize``
    by_class : str, optional
        Column to group vector features by (e.g., 'continent')
    config : Config, optional
        Settings to take the default figure size from

    Returns:
    --------
    fig : matplotlib.figure.Figure
        Figure object
    """
    fig, ax = plt.subplots(figsize=figsize or (config or get_default_config()).figsize)

    if isinstance(dataset, VectorDataset):
        objects = dataset.objects
        if attribute is None or attribute not in objects.columns:
            plt.close(fig)
            raise ValueError(f"Attribute '{attribute}' not found in dataset '{dataset.name}'")

        if by_class and by_class in objects.columns:
            for class_value, group in objects[[attribute, by_class]].groupby(by_class):
                if class_value is None:
                    continue
                sns.histplot(group[attribute], bins=bins, alpha=0.6, label=str(class_value), ax=ax)
            ax.legend(title=by_class)
        else:
            sns.histplot(objects[attribute], bins=bins, ax=ax)

        ax.set_title(f"Histogram of {attribute}")
        ax.set_xlabel(attribute)

    elif isinstance(dataset, RasterDataset):
        single = dataset.band(band)
        values = single.data[0].ravel()
        if single.nodata is not None:
            values = values[values != single.nodata]
        if np.issubdtype(values.dtype, np.floating):
            values = values[np.isfinite(values)]
        sns.histplot(values, bins=bins, ax=ax)
        ax.set_title(f"Histogram of {single.band_names[0]}")
        ax.set_xlabel("Cell value")

    else:
        plt.close(fig)
        raise TypeError(f"Cannot plot object of type {type(dataset).__name__}")

    ax.set_ylabel("Count")
    return fig
