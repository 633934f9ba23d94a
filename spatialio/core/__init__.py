# -*- coding: utf-8 -*-
"""The core package holds the building blocks shared by every reader and writer.

It defines the in-memory vector and raster datasets, the driver registry that maps extensions
and driver names to formats, and the error hierarchy.
"""
