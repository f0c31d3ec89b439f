"""
Runner Kernel - Markup Renderer

Pure function: svg snippet → sanitized svg markup.

  precondition   `<svg` and `</svg>` must both appear
  sanitize       lxml parse (recover, no entities, no network) filtered
                 through an explicit allow-list of svg and svg-filter
                 elements and attributes
  repair links   href / xlink:href values are checked on their own; only
                 fragments, http(s), relative paths and raster data URIs stay

Scripts, event handlers, foreignObject, comments and processing
instructions never reach the output.
"""

from __future__ import annotations

import re

from lxml import etree

from runner.kernel.errors import MarkupValidationError

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"
XML_NS = "http://www.w3.org/XML/1998/namespace"

# ---------------------------------------------------------------------------
# Allow-list profile (svg + svg filters)
# ---------------------------------------------------------------------------

SVG_ELEMENTS: frozenset[str] = frozenset(
    {
        "svg", "a", "g", "defs", "desc", "title", "metadata", "symbol", "use", "switch", "view",
        "circle", "ellipse", "line", "path", "polygon", "polyline", "rect", "image",
        "text", "tspan", "textpath", "style",
        "lineargradient", "radialgradient", "stop", "pattern", "clippath", "mask", "marker",
        "animate", "animatemotion", "animatetransform", "mpath", "set",
    }
)

SVG_FILTER_ELEMENTS: frozenset[str] = frozenset(
    {
        "filter", "feblend", "fecolormatrix", "fecomponenttransfer", "fecomposite",
        "feconvolvematrix", "fediffuselighting", "fedisplacementmap", "fedistantlight",
        "fedropshadow", "feflood", "fefunca", "fefuncb", "fefuncg", "fefuncr",
        "fegaussianblur", "feimage", "femerge", "femergenode", "femorphology", "feoffset",
        "fepointlight", "fespecularlighting", "fespotlight", "fetile", "feturbulence",
    }
)

ALLOWED_ELEMENTS = SVG_ELEMENTS | SVG_FILTER_ELEMENTS

# Elements that can rewrite another attribute of their target at runtime
ANIMATION_ELEMENTS: frozenset[str] = frozenset({"animate", "animatemotion", "animatetransform", "set"})
ANIMATION_VALUE_ATTRIBUTES: frozenset[str] = frozenset({"from", "to", "by", "values"})

ALLOWED_ATTRIBUTES: frozenset[str] = frozenset(
    {
        # core
        "id", "class", "style", "lang", "tabindex", "role", "version", "display", "visibility",
        "overflow", "opacity", "color", "transform", "href",
        # geometry
        "x", "y", "x1", "y1", "x2", "y2", "cx", "cy", "r", "rx", "ry", "fx", "fy", "fr",
        "width", "height", "d", "points", "pathlength", "viewbox", "preserveaspectratio",
        # paint
        "fill", "fill-opacity", "fill-rule", "stroke", "stroke-width", "stroke-linecap",
        "stroke-linejoin", "stroke-dasharray", "stroke-dashoffset", "stroke-miterlimit",
        "stroke-opacity", "paint-order", "vector-effect", "shape-rendering", "text-rendering",
        "image-rendering", "color-interpolation", "color-interpolation-filters",
        # text
        "font-family", "font-size", "font-weight", "font-style", "font-variant", "text-anchor",
        "dominant-baseline", "alignment-baseline", "baseline-shift", "letter-spacing",
        "word-spacing", "text-decoration", "writing-mode", "dx", "dy", "rotate", "textlength",
        "lengthadjust", "startoffset", "method", "spacing", "side",
        # gradients, patterns, clipping, markers
        "offset", "stop-color", "stop-opacity", "gradientunits", "gradienttransform",
        "spreadmethod", "patternunits", "patterncontentunits", "patterntransform",
        "clip-path", "clip-rule", "clippathunits", "mask", "maskunits", "maskcontentunits",
        "marker-start", "marker-mid", "marker-end", "markerwidth", "markerheight",
        "markerunits", "refx", "refy", "orient",
        # filters
        "filter", "filterunits", "primitiveunits", "in", "in2", "result", "stddeviation",
        "mode", "operator", "k1", "k2", "k3", "k4", "type", "values", "tablevalues", "slope",
        "intercept", "amplitude", "exponent", "scale", "xchannelselector", "ychannelselector",
        "basefrequency", "numoctaves", "seed", "stitchtiles", "flood-color", "flood-opacity",
        "lighting-color", "surfacescale", "diffuseconstant", "specularconstant",
        "specularexponent", "kernelmatrix", "kernelunitlength", "order", "divisor", "bias",
        "edgemode", "preservealpha", "azimuth", "elevation", "pointsatx", "pointsaty",
        "pointsatz", "limitingconeangle", "radius",
        # animation
        "attributename", "attributetype", "begin", "dur", "end", "repeatcount", "repeatdur",
        "from", "to", "by", "keytimes", "keysplines", "keypoints", "calcmode", "additive",
        "accumulate", "restart", "path",
        # accessibility
        "aria-label", "aria-hidden", "aria-labelledby", "aria-describedby",
    }
)

# Attributes allowed in a foreign namespace, as (namespace, local name)
ALLOWED_NAMESPACED_ATTRIBUTES: frozenset[tuple[str, str]] = frozenset(
    {(XLINK_NS, "href"), (XLINK_NS, "title"), (XML_NS, "space"), (XML_NS, "lang")}
)

_SVG_OPEN = re.compile(r"<svg[\s>/]", re.IGNORECASE)
_SVG_CLOSE = re.compile(r"</svg\s*>", re.IGNORECASE)
_CONTROL_CHARS = re.compile(r"[\x00-\x20\x7f]+")
_SAFE_DATA_URI = re.compile(r"^data:image/(png|jpe?g|gif|webp|bmp);", re.IGNORECASE)
_UNSAFE_CSS = re.compile(r"javascript:|expression\s*\(|@import|behavior\s*:", re.IGNORECASE)


def has_svg_root(code: str) -> bool:
    """True when the text holds both an opening and a closing svg tag."""
    return bool(_SVG_OPEN.search(code) and _SVG_CLOSE.search(code))


def is_safe_url(value: str) -> bool:
    """Fragment, http(s), relative path or raster data URI."""
    compact = _CONTROL_CHARS.sub("", value)
    lowered = compact.lower()
    if not lowered or lowered.startswith("#"):
        return True
    if lowered.startswith(("http://", "https://")):
        return True
    if lowered.startswith("data:"):
        return bool(_SAFE_DATA_URI.match(lowered))
    scheme_end = lowered.find(":")
    if scheme_end == -1:
        return True
    # a colon after the first path, query or fragment delimiter is not a scheme
    return any(0 <= lowered.find(ch) < scheme_end for ch in "/?#")


# ---------------------------------------------------------------------------
# Sanitizer
# ---------------------------------------------------------------------------


class SvgSanitizer:
    """Allow-list svg sanitizer on top of lxml."""

    def __init__(
        self,
        elements: frozenset[str] = ALLOWED_ELEMENTS,
        attributes: frozenset[str] = ALLOWED_ATTRIBUTES,
        namespaced_attributes: frozenset[tuple[str, str]] = ALLOWED_NAMESPACED_ATTRIBUTES,
    ) -> None:
        self.elements = elements
        self.attributes = attributes
        self.namespaced_attributes = namespaced_attributes
        self._parser = etree.XMLParser(
            recover=True,
            resolve_entities=False,
            no_network=True,
            remove_comments=True,
            remove_pis=True,
            huge_tree=False,
        )

    def sanitize(self, markup: str) -> str:
        """Parse, filter and re-serialize. Raises MarkupValidationError if nothing usable parses."""
        try:
            root = etree.fromstring(markup.encode("utf-8"), self._parser)
        except etree.XMLSyntaxError as e:
            raise MarkupValidationError(f"Invalid SVG: {e}") from e
        if root is None or not isinstance(root.tag, str) or etree.QName(root).localname.lower() != "svg":
            raise MarkupValidationError("Invalid SVG: root element is not <svg>")

        self._clean(root)
        self._repair_links(root)
        return etree.tostring(root, encoding="unicode")

    # -- filtering -----------------------------------------------------------

    def _allowed_element(self, el: etree._Element) -> bool:
        if not isinstance(el.tag, str):
            return False
        qname = etree.QName(el)
        if qname.namespace not in (None, SVG_NS):
            return False
        name = qname.localname.lower()
        if name not in self.elements:
            return False
        if name == "style" and el.text and _UNSAFE_CSS.search(el.text):
            return False
        if name in ANIMATION_ELEMENTS and not _safe_animation(el):
            return False
        return True

    def _clean(self, el: etree._Element) -> None:
        self._clean_attributes(el)
        for child in list(el):
            if self._allowed_element(child):
                self._clean(child)
            else:
                _drop(child)

    def _clean_attributes(self, el: etree._Element) -> None:
        for key in list(el.attrib):
            qname = etree.QName(key)
            local = qname.localname.lower()
            if qname.namespace is None:
                allowed = local in self.attributes or local.startswith("data-")
            else:
                allowed = (qname.namespace, local) in self.namespaced_attributes
            if not allowed or local.startswith("on"):
                del el.attrib[key]
            elif local == "style" and _UNSAFE_CSS.search(el.attrib[key]):
                del el.attrib[key]

    def _repair_links(self, root: etree._Element) -> None:
        """Namespaced link attributes are checked separately from the element profile."""
        for el in root.iter():
            if not isinstance(el.tag, str):
                continue
            for key in list(el.attrib):
                if etree.QName(key).localname.lower() == "href" and not is_safe_url(el.attrib[key]):
                    del el.attrib[key]


def _safe_animation(el: etree._Element) -> bool:
    """
    An animation may not target a link attribute, and none of its values may be
    a link the href check would refuse.
    """
    for key, value in el.attrib.items():
        local = etree.QName(key).localname.lower()
        if local == "attributename":
            target = _CONTROL_CHARS.sub("", value).lower()
            if target.rpartition(":")[2] == "href":
                return False
        elif local in ANIMATION_VALUE_ATTRIBUTES:
            if not all(is_safe_url(part) for part in value.split(";")):
                return False
    return True


def _drop(el: etree._Element) -> None:
    """Remove an element and its subtree, keeping its tail text in place."""
    parent = el.getparent()
    if parent is None:
        return
    if el.tail:
        previous = el.getprevious()
        if previous is not None:
            previous.tail = (previous.tail or "") + el.tail
        else:
            parent.text = (parent.text or "") + el.tail
    parent.remove(el)


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------


def extract_svg(code: str) -> str:
    """Text from the first `<svg` to the end of the last `</svg>`."""
    start = _SVG_OPEN.search(code)
    closes = list(_SVG_CLOSE.finditer(code))
    if not start or not closes:
        raise MarkupValidationError("Invalid SVG: Missing <svg> tags")
    return code[start.start() : closes[-1].end()]


class MarkupRenderer:
    """Validates and sanitizes vector markup for mounting."""

    def __init__(self, sanitizer: SvgSanitizer | None = None) -> None:
        self.sanitizer = sanitizer or SvgSanitizer()

    def render(self, code: str) -> str:
        """
        Return sanitized svg markup.

        Raises:
            MarkupValidationError: missing svg tags, or nothing parseable
        """
        if not has_svg_root(code):
            raise MarkupValidationError("Invalid SVG: Missing <svg> tags")
        return self.sanitizer.sanitize(extract_svg(code))
