# -*- coding: utf-8 -*-
"""Parses OGC capabilities documents and exception reports.

Capabilities of WFS 1.0/1.1/2.0 and WCS 1.0/1.1/2.0 services go through OWSLib. Exception
reports, which can come back in place of any response body, are recognised by matching local
element names, so the many namespace variants servers emit do not need to be enumerated.
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field

from owslib.util import ServiceException
from owslib.wcs import WebCoverageService
from owslib.wfs import WebFeatureService

from ..core.exceptions import ParseError, ServiceError

EXCEPTION_REPORT_TAGS = ("ExceptionReport", "ServiceExceptionReport")

WCS_VERSIONS = ("1.0.0", "1.1.0", "1.1.1", "2.0.0", "2.0.1")

DEFAULT_VERSIONS = {"WFS": "1.0.0", "WCS": "1.0.0"}


def _local(tag):
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


def _namespace(tag):
    return tag[1:].split("}", 1)[0] if isinstance(tag, str) and tag.startswith("{") else ""


def _iter(element, name):
    return (el for el in element.iter() if _local(el.tag) == name)


@dataclass
class Capabilities:
    """What a web feature or coverage service advertises.

    Attributes:
        service: "WFS" or "WCS"
        version: Version the server answered with
        title: Service title, if given
        type_names: Feature type names (WFS) or coverage ids (WCS), in document order
        type_titles: Mapping of type name to its human-readable title
        operations: Supported request names, e.g. ["GetCapabilities", "GetFeature"]
        output_formats: Formats advertised for GetFeature / GetCoverage
    """

    service: str
    version: str = None
    title: str = None
    type_names: list = field(default_factory=list)
    type_titles: dict = field(default_factory=dict)
    operations: list = field(default_factory=list)
    output_formats: list = field(default_factory=list)

    def resolve_type(self, name):
        """Return the advertised name matching ``name``, allowing the namespace prefix to be omitted."""
        if name in self.type_names:
            return name
        matches = [advertised for advertised in self.type_names if advertised.split(":")[-1] == name]
        return matches[0] if len(matches) == 1 else None

    def supports(self, operation):
        return operation in self.operations


def _root_tag(path):
    """Local name of the document element, or None when the file is not XML."""
    with open(path, "rb") as f:
        try:
            for _, element in ET.iterparse(f, events=("start",)):
                return _local(element.tag)
        except ET.ParseError:
            return None
    return None


def raise_for_exception_report(path, operation, params):
    """Raise ServiceError if the response body at ``path`` is an OGC exception report.

    Servers often answer with HTTP 200 and an ExceptionReport body, so the status code alone
    does not tell a fault from a payload.
    """
    if _root_tag(path) not in EXCEPTION_REPORT_TAGS:
        return

    root = ET.parse(path).getroot()
    messages = []
    for exception in list(_iter(root, "Exception")) + list(_iter(root, "ServiceException")):
        code = exception.get("exceptionCode") or exception.get("code")
        texts = [el.text.strip() for el in _iter(exception, "ExceptionText") if el.text]
        if not texts and exception.text and exception.text.strip():
            texts = [exception.text.strip()]
        message = " ".join(texts) or "no exception text"
        messages.append(f"[{code}] {message}" if code else message)

    raise ServiceError(operation, params, "; ".join(messages) or "service returned an exception report")


def _detect_service(root, default):
    local = _local(root.tag).upper()
    namespace = _namespace(root.tag).lower()
    if local.startswith("WFS") or "/wfs" in namespace:
        return "WFS"
    if local.startswith("WCS") or "/wcs" in namespace:
        return "WCS"
    return default


def _owslib_version(service, version):
    """Map an advertised version onto one OWSLib has a reader for."""
    if service == "WFS":
        for prefix, supported in (("1.0", "1.0.0"), ("1.1", "1.1.0"), ("2.0", "2.0.0")):
            if version.startswith(prefix):
                return supported
        return None
    return version if version in WCS_VERSIONS else None


def _read_service(url, service, version, xml):
    if service == "WFS":
        return WebFeatureService(url, version=version, xml=xml)
    return WebCoverageService(url, version=version, xml=xml)


def _parse_operations(root):
    operations = []
    for operation in _iter(root, "Operation"):
        name = operation.get("name")
        if name and name not in operations:
            operations.append(name)

    # WFS 1.0 / WCS 1.0 list requests as children of <Request>
    for request in _iter(root, "Request"):
        for child in request:
            name = _local(child.tag)
            if name and name not in operations:
                operations.append(name)
    return operations


def _parse_formats(root, service):
    formats = []
    wanted_operation = "GetFeature" if service == "WFS" else "GetCoverage"
    for operation in _iter(root, "Operation"):
        if operation.get("name") != wanted_operation:
            continue
        for parameter in _iter(operation, "Parameter"):
            if parameter.get("name", "").lower() in ("outputformat", "format"):
                formats.extend(el.text.strip() for el in _iter(parameter, "Value") if el.text)

    for result_format in _iter(root, "ResultFormat"):
        formats.extend(_local(child.tag) for child in result_format)
    for supported in list(_iter(root, "formatSupported")) + list(_iter(root, "SupportedFormat")):
        if supported.text:
            formats.append(supported.text.strip())

    unique = []
    for fmt in formats:
        if fmt not in unique:
            unique.append(fmt)
    return unique


def parse_capabilities(source, service="WFS", operation="get_capabilities", params=None, url=""):
    """Parse a capabilities document.

    Service metadata and the advertised types are read with OWSLib's WFS and WCS readers;
    operations and output formats are taken from the document directly, since OWSLib
    exposes them differently for every protocol version.

    Parameters:
    -----------
    source : str or os.PathLike
        Path to the XML document
    service : str
        Service type to assume when the document does not reveal it
    operation, params :
        Reported in errors
    url : str
        Endpoint the document came from

    Returns:
    --------
    capabilities : Capabilities
    """
    with open(source, "rb") as f:
        xml = f.read()
    try:
        root = ET.fromstring(xml)
    except ET.ParseError as e:
        raise ParseError(operation, params, f"Invalid capabilities XML: {e}") from e

    if _local(root.tag) in EXCEPTION_REPORT_TAGS:
        raise ParseError(operation, params, "document is an exception report, not a capabilities document")

    detected = _detect_service(root, service.upper())
    version = root.get("version") or DEFAULT_VERSIONS[detected]
    reader_version = _owslib_version(detected, version)
    if reader_version is None:
        raise ParseError(operation, params, f"{detected} version {version} is not supported")

    try:
        metadata = _read_service(url, detected, reader_version, xml)
    except (AttributeError, KeyError, TypeError, ValueError, ServiceException) as e:
        raise ParseError(operation, params, f"Invalid {detected} capabilities: {e}") from e

    names, titles = [], {}
    for name, content in metadata.contents.items():
        if not name or name in names:
            continue
        names.append(name)
        if getattr(content, "title", None):
            titles[name] = content.title

    identification = getattr(metadata, "identification", None)

    return Capabilities(
        service=detected,
        version=version,
        title=getattr(identification, "title", None),
        type_names=names,
        type_titles=titles,
        operations=_parse_operations(root),
        output_formats=_parse_formats(root, detected),
    )
