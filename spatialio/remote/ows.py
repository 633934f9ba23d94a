# -*- coding: utf-8 -*-
"""Client for OGC Web Feature Services (WFS) and Web Coverage Services (WCS).

Requests are plain HTTP GETs with key-value query parameters::

    ?service=WFS&request=GetCapabilities
    ?service=WFS&request=GetFeature&typeName=area:FAO_AREAS&cql_filter=F_CODE='27'

Responses are streamed to a temporary file, checked for an OGC exception report and then decoded
with the regular vector and raster readers.
"""

import logging

from ..config import get_default_config
from ..core.exceptions import UnknownType
from ..io.raster import read_raster_bands
from ..io.vector import read_vector
from .capabilities import parse_capabilities, raise_for_exception_report
from .download import new_session, streamed_download

logger = logging.getLogger(__name__)

SERVICES = ("WFS", "WCS")

DEFAULT_WCS_VERSION = "2.0.1"

_VECTOR_SUFFIXES = (
    ("json", ".geojson"),
    ("kml", ".kml"),
    ("csv", ".csv"),
    ("gpkg", ".gpkg"),
    ("geopackage", ".gpkg"),
    ("shape-zip", ".zip"),
    ("gml", ".gml"),
    ("xml", ".gml"),
)

_RASTER_SUFFIXES = (
    ("tif", ".tif"),
    ("geotiff", ".tif"),
    ("aaigrid", ".asc"),
    ("arcgrid", ".asc"),
    ("ascii", ".asc"),
    ("gpkg", ".gpkg"),
)


def _suffix_for(output_format, table, default):
    if not output_format:
        return default
    lowered = output_format.lower()
    for marker, suffix in table:
        if marker in lowered:
            return suffix
    return default


class OWSClient:
    """Queries one WFS or WCS endpoint.

    Parameters:
    -----------
    base_url : str
        Service endpoint, e.g. "https://www.fao.org/fishery/geoserver/wfs"
    service : str
        "WFS" or "WCS"
    version : str, optional
        Protocol version to request; WFS omits it by default, WCS uses 2.0.1
    config : Config, optional
        Timeout, chunk size and temporary directory settings
    session : requests.Session, optional
        Session used for every request
    """

    def __init__(self, base_url, service="WFS", version=None, config=None, session=None):
        service = service.upper()
        if service not in SERVICES:
            raise ValueError(f"Unsupported service '{service}'. Use one of: {', '.join(SERVICES)}")
        if service == "WCS" and version is None:
            version = DEFAULT_WCS_VERSION

        self.base_url = base_url
        self.service = service
        self.version = version
        self.config = config or get_default_config()
        self.session = session or new_session(self.config)

    def _params(self, request):
        params = {"service": self.service, "request": request}
        if self.version:
            params["version"] = self.version
        return params

    def _download(self, params, suffix, operation):
        return streamed_download(
            self.base_url,
            params=params,
            suffix=suffix,
            session=self.session,
            config=self.config,
            operation=operation,
        )

    def get_capabilities(self):
        """Fetch and parse the service's capabilities document.

        Returns:
        --------
        capabilities : Capabilities
            Advertised type names, operations and output formats
        """
        params = self._params("GetCapabilities")
        described = {"url": self.base_url, **params}
        with self._download(params, ".xml", "get_capabilities") as path:
            raise_for_exception_report(path, "get_capabilities", described)
            capabilities = parse_capabilities(path, service=self.service, params=described, url=self.base_url)

        logger.info(
            "%s %s at %s advertises %d type(s)",
            capabilities.service,
            capabilities.version,
            self.base_url,
            len(capabilities.type_names),
        )
        return capabilities

    def _require_type(self, name, operation):
        capabilities = self.get_capabilities()
        resolved = capabilities.resolve_type(name)
        if resolved is None:
            shown = ", ".join(capabilities.type_names[:20])
            if len(capabilities.type_names) > 20:
                shown += ", ..."
            raise UnknownType(
                operation,
                {"url": self.base_url, "type_name": name},
                f"not advertised by the service; available: {shown or 'none'}",
            )
        return resolved

    def fetch_features(
        self,
        type_name,
        cql_filter=None,
        srs_name=None,
        max_features=None,
        output_format=None,
        params=None,
        validate=True,
    ):
        """Fetch the features of one type (WFS GetFeature).

        Parameters:
        -----------
        type_name : str
            Feature type, e.g. "area:FAO_AREAS_ERASE"
        cql_filter : str, optional
            Server-side filter expression (GeoServer CQL)
        srs_name : str, optional
            CRS to return geometries in, e.g. "EPSG:4326"
        max_features : int, optional
            Upper bound on the number of features returned
        output_format : str, optional
            Response format, e.g. "application/json"; GML when omitted
        params : dict, optional
            Extra query parameters passed through unchanged
        validate : bool
            Check ``type_name`` against the capabilities first

        Returns:
        --------
        dataset : VectorDataset
        """
        if self.service != "WFS":
            raise ValueError("fetch_features needs a WFS endpoint")
        if validate:
            type_name = self._require_type(type_name, "fetch_features")

        query = self._params("GetFeature")
        wfs2 = bool(self.version and self.version.startswith("2"))
        query["typeNames" if wfs2 else "typeName"] = type_name
        if cql_filter:
            query["cql_filter"] = cql_filter
        if srs_name:
            query["srsName"] = srs_name
        if max_features is not None:
            query["count" if wfs2 else "maxFeatures"] = int(max_features)
        if output_format:
            query["outputFormat"] = output_format
        if params:
            query.update(params)

        described = {"url": self.base_url, **query}
        suffix = _suffix_for(output_format, _VECTOR_SUFFIXES, ".gml")
        with self._download(query, suffix, "fetch_features") as path:
            raise_for_exception_report(path, "fetch_features", described)
            dataset = read_vector(path)

        dataset.name = type_name
        dataset.source = self.base_url
        dataset.metadata["request"] = query
        logger.info("Fetched %d feature(s) of %s from %s", len(dataset), type_name, self.base_url)
        return dataset

    def fetch_coverage(self, coverage_id, fmt="image/tiff", subset=None, params=None, validate=True):
        """Fetch a coverage as a raster (WCS GetCoverage).

        Parameters:
        -----------
        coverage_id : str
            Coverage identifier as advertised in the capabilities
        fmt : str
            Response format, GeoTIFF by default
        subset : list of str, optional
            WCS 2.0 subset expressions, e.g. ["Lat(40,45)", "Long(5,10)"]
        params : dict, optional
            Extra query parameters passed through unchanged
        validate : bool
            Check ``coverage_id`` against the capabilities first

        Returns:
        --------
        dataset : RasterDataset
            Every band of the returned coverage
        """
        if self.service != "WCS":
            raise ValueError("fetch_coverage needs a WCS endpoint")
        if validate:
            coverage_id = self._require_type(coverage_id, "fetch_coverage")

        query = self._params("GetCoverage")
        if self.version.startswith("2"):
            query["coverageId"] = coverage_id
        elif self.version.startswith("1.1"):
            query["identifier"] = coverage_id
        else:
            query["coverage"] = coverage_id
        query["format"] = fmt
        if subset:
            query["subset"] = list(subset)
        if params:
            query.update(params)

        described = {"url": self.base_url, **query}
        suffix = _suffix_for(fmt, _RASTER_SUFFIXES, ".tif")
        with self._download(query, suffix, "fetch_coverage") as path:
            raise_for_exception_report(path, "fetch_coverage", described)
            dataset = read_raster_bands(path)

        dataset.source = self.base_url
        dataset.metadata["request"] = query
        logger.info("Fetched coverage %s (%d band(s)) from %s", coverage_id, dataset.count, self.base_url)
        return dataset
