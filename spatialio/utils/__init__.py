# -*- coding: utf-8 -*-
"""Small helpers: driver option parsing, dataset summaries and synthetic sample data."""
