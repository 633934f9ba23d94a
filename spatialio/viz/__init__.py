# -*- coding: utf-8 -*-
"""The viz package draws datasets with matplotlib and seaborn and saves the figures to image files."""
