"""
Namespace-agnostic helpers for the XML payloads of the SL APIs.

The HAFAS responses carry a default namespace while the older api2
responses do not, so elements are matched on their local name only.
"""

from typing import Dict, List, Optional

from lxml import etree

PARSER = etree.XMLParser(resolve_entities=False, no_network=True)


def parse(content: bytes) -> etree._Element:
    """
    Raises:
        etree.XMLSyntaxError: If content is not well formed
    """
    return etree.fromstring(content, PARSER)


def children(element: etree._Element, name: str) -> List[etree._Element]:
    """Child elements with the given local name."""
    return [
        child
        for child in element.iterchildren(tag=etree.Element)
        if etree.QName(child).localname == name
    ]


def child(element: etree._Element, name: str) -> Optional[etree._Element]:
    found = children(element, name)
    return found[0] if found else None


def nested(element: etree._Element, *path: str) -> List[etree._Element]:
    """Elements at the end of path, e.g. nested(trip, "LegList", "Leg")."""
    *containers, name = path
    for container in containers:
        element = child(element, container)
        if element is None:
            return []
    return children(element, name)


def attrs(element: etree._Element, mapping: Dict[str, str]) -> Dict[str, str]:
    """Map non-empty XML attributes to model field names."""
    return {
        field: element.get(attr)
        for attr, field in mapping.items()
        if element.get(attr)
    }


def texts(element: etree._Element, mapping: Dict[str, str]) -> Dict[str, str]:
    """
    Map the text of child elements to model field names.

    Element names are compared case-insensitively; the api2 services are
    not consistent about "Url" and "URL".
    """
    found = {
        etree.QName(sub).localname.lower(): (sub.text or "").strip()
        for sub in element.iterchildren(tag=etree.Element)
    }
    result = {}
    for name, field in mapping.items():
        value = found.get(name.lower())
        if value:
            result[field] = value
    return result
