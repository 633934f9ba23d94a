# -*- coding: utf-8 -*-
"""The io package contains modules for reading and writing both raster and vector data.

Format detection, layer and band selection and overwrite policy live here; decoding and encoding
are left to geopandas (pyogrio) and rasterio.
"""
