# -*- coding: utf-8 -*-
"""The remote package retrieves data over HTTP.

It streams geoportal downloads to disk and queries OGC web feature and coverage services,
handing the saved responses to the regular readers.
"""
