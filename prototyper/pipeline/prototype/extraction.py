import re

# first doctype through the last closing tag, across newlines
HTML_DOCUMENT_PATTERN = re.compile(r"<!DOCTYPE html[\s\S]*</html>", re.IGNORECASE)


def extract_html_document(text: str) -> str:
    """Return the full HTML document span inside free-form model output, or "" if there is none."""
    if not text:
        return ""
    match = HTML_DOCUMENT_PATTERN.search(text)
    return match.group(0) if match else ""
