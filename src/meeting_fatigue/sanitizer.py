"""Event description sanitization.

Objective:
    Convert raw event descriptions returned by Google Calendar (frequently
    HTML produced by the calendar editor or by conferencing add-ons) into a
    compact plain-text representation suitable for LLM prompting and keyword
    matching.

Responsibilities:
    - Strip potentially dangerous HTML elements (e.g., ``<script>``).
    - Convert HTML to markdown-ish text to preserve some structure.
    - Normalize and compress whitespace, drop URLs and link markup.
    - Truncate to a caller-supplied length.

High-level call tree:
    - :func:`sanitize_description`
        - :func:`looks_like_html`
        - :func:`html_to_markdown` (HTML input)
        - :func:`clean_text`

Security notes:
    Sanitization keeps raw HTML and script content out of the prompt and
    reduces the tokens sent to the LLM.
"""

import re
from typing import Optional

from bs4 import BeautifulSoup
from markdownify import markdownify as md

_HTML_TAG_RE = re.compile(r"<\s*/?\s*[a-zA-Z][^>]*>")


def looks_like_html(text: str) -> bool:
    """Check whether a description contains HTML markup.

    Google Calendar does not report a content type for descriptions, so the
    presence of a tag is used as the signal.

    Args:
        text: Raw description.

    Returns:
        bool: True if at least one HTML tag is present.
    """
    return bool(text) and bool(_HTML_TAG_RE.search(text))


def html_to_markdown(html_content: str) -> str:
    """Convert HTML to markdown-like plain text.

    Scripts, styles and document metadata are removed with BeautifulSoup
    before calling ``markdownify``.

    Args:
        html_content: Raw HTML string.

    Returns:
        str: Markdown formatted text.
    """
    if not html_content:
        return ""

    soup = BeautifulSoup(html_content, "html.parser")
    for element in soup(["script", "style", "head", "meta", "link"]):
        element.decompose()

    return md(str(soup), heading_style="ATX")


def clean_text(text: str) -> str:
    """Normalize and compact plain text.

    Removes:
    - HTML tags
    - Markdown links and images
    - Table separators
    - Horizontal rules
    - URLs (meeting join links are pure noise for categorization)
    - Multiple newlines and spaces
    - Special characters (except essential punctuation)

    Args:
        text: Raw text to clean.

    Returns:
        str: Cleaned text.
    """
    if not text:
        return ""

    # Remove any remaining HTML tags
    text = re.sub(r"<[^>]*>", "", text)

    # Remove Markdown images like ![alt](image-link)
    text = re.sub(r"!\[[^\]]*\]\([^)]*\)", "", text)

    # Remove Markdown links like [text](link)
    text = re.sub(r"\[([^\]]*)\]\([^)]*\)", r"\1", text)

    text = re.sub(r"\|", " ", text)
    text = re.sub(r"-{3,}", "", text)
    text = re.sub(r"https?://\S+", "", text)

    # Remove multiple newlines, replace with single space
    text = re.sub(r"\n+", " ", text)

    # Keep ':' and '-' so patterns like "1:1" and "1-1" survive
    text = re.sub(r"[^\w\s.,!?@:;'\"/-]", "", text)

    text = re.sub(r"\s{2,}", " ", text)

    return text.strip()


def sanitize_description(
    description: Optional[str], max_length: Optional[int] = None
) -> str:
    """Sanitize an event description for AI processing.

    This is the main entrypoint used by the categorizer.

    Args:
        description: Raw event description (HTML or plain text), may be None.
        max_length: Optional number of characters to keep.

    Returns:
        str: Sanitized text ready for prompting.
    """
    if not description:
        return ""

    if looks_like_html(description):
        cleaned = clean_text(html_to_markdown(description))
    else:
        cleaned = clean_text(description)

    if max_length is not None and len(cleaned) > max_length:
        cleaned = cleaned[:max_length]

    return cleaned
