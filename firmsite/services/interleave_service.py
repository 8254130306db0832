"""Content/image interleaving for service and sub-service pages.

Splits a rich-text HTML fragment into runs of top-level elements and
inserts the entity's images between those runs, so a long article is
broken up by its pictures instead of showing them all at one end.

The stride is ``ceil(n / (k + 1))`` for ``n`` top-level tags and ``k``
images. A run is never closed right after an ``h2``/``h3`` so headings
stay with the paragraph that follows them; the last tag always closes a
run while images remain. Images left over after the walk are appended
at the end.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PageElement

from firmsite.schemas import ContentSection, ImageAsset, ImageSection, Section

logger = logging.getLogger(__name__)

HEADING_TAGS = frozenset({"h2", "h3"})


def _outer_html(node: PageElement) -> str:
    if isinstance(node, NavigableString):
        # Escapes text and re-wraps comments/doctypes
        return node.output_ready()
    return str(node)


def interleave(content: str, images: Optional[Sequence[ImageAsset]]) -> List[Section]:
    """Return the ordered content and image sections for ``content``.

    Without images the content is returned untouched as a single section.
    Content without any top-level tag (bare text) is not split; its
    images follow it.
    """
    images = list(images or [])
    if not images:
        return [ContentSection(html=content)]

    soup = BeautifulSoup(content or "", "html.parser")
    nodes = list(soup.contents)
    tag_positions = [i for i, node in enumerate(nodes) if isinstance(node, Tag)]

    if not tag_positions:
        sections: List[Section] = []
        if (content or "").strip():
            sections.append(ContentSection(html=content))
        sections.extend(ImageSection(image=img) for img in images)
        return sections

    n_tags = len(tag_positions)
    n_images = len(images)
    stride = math.ceil(n_tags / (n_images + 1))
    last_tag = tag_positions[-1]
    logger.debug("Interleaving %d images into %d elements (stride %d)", n_images, n_tags, stride)

    sections = []
    buffer: List[str] = []
    run_length = 0
    image_index = 0

    for pos, node in enumerate(nodes):
        buffer.append(_outer_html(node))
        if not isinstance(node, Tag):
            continue
        run_length += 1
        if image_index >= n_images:
            continue

        is_heading = node.name in HEADING_TAGS
        if (run_length >= stride and not is_heading) or pos == last_tag:
            sections.append(ContentSection(html="".join(buffer)))
            sections.append(ImageSection(image=images[image_index]))
            buffer = []
            run_length = 0
            image_index += 1

    remainder = "".join(buffer)
    if remainder.strip():
        sections.append(ContentSection(html=remainder))

    # Short content runs out of break points before it runs out of images
    for image in images[image_index:]:
        sections.append(ImageSection(image=image))

    return sections


def count_elements(html: str) -> int:
    """Number of top-level tags in ``html``."""
    soup = BeautifulSoup(html or "", "html.parser")
    return sum(1 for node in soup.contents if isinstance(node, Tag))
