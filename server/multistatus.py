"""Renders EntryInfo lists as WebDAV PROPFIND multistatus documents."""

import xml.etree.ElementTree as ET
from datetime import timezone
from email.utils import format_datetime
from typing import Iterable
from urllib.parse import quote

from common.types import EntryInfo

DAV_NAMESPACE = "DAV:"

ET.register_namespace("D", DAV_NAMESPACE)


def _dav(tag: str) -> str:
    return f"{{{DAV_NAMESPACE}}}{tag}"


def http_date(entry: EntryInfo) -> str:
    """
    Format the entry's modification time as an RFC 1123 date.
    """
    mod_time = entry.mod_time
    if mod_time.tzinfo is None:
        mod_time = mod_time.replace(tzinfo=timezone.utc)
    return format_datetime(mod_time.astimezone(timezone.utc), usegmt=True)


def entry_href(prefix: str, entry: EntryInfo) -> str:
    """
    URL path of an entry under the mount prefix.
    """
    if entry.is_directory and entry.name == "":
        return f"{prefix}/"
    return f"{prefix}/{quote(entry.name)}"


def build_multistatus(prefix: str, entries: Iterable[EntryInfo]) -> bytes:
    """
    Build a 207 Multi-Status body describing entries.

    Args:
        prefix: Mount prefix the server is served under (e.g., '/dav')
        entries: Entries to describe, in order

    Returns:
        UTF-8 encoded XML document
    """
    multistatus = ET.Element(_dav("multistatus"))
    for entry in entries:
        response = ET.SubElement(multistatus, _dav("response"))
        ET.SubElement(response, _dav("href")).text = entry_href(prefix, entry)

        propstat = ET.SubElement(response, _dav("propstat"))
        prop = ET.SubElement(propstat, _dav("prop"))
        ET.SubElement(prop, _dav("displayname")).text = entry.name
        ET.SubElement(prop, _dav("getlastmodified")).text = http_date(entry)
        resourcetype = ET.SubElement(prop, _dav("resourcetype"))
        if entry.is_directory:
            ET.SubElement(resourcetype, _dav("collection"))
        else:
            ET.SubElement(prop, _dav("getcontentlength")).text = str(entry.size)
            ET.SubElement(prop, _dav("getcontenttype")).text = "application/octet-stream"
        ET.SubElement(propstat, _dav("status")).text = "HTTP/1.1 200 OK"

    return ET.tostring(multistatus, encoding="utf-8", xml_declaration=True)
