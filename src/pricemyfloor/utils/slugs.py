"""
URL slugs for brand pages
"""
import re


def slugify(text: str) -> str:
    if not text:
        return ""
    slug = re.sub(r"[^a-zA-Z0-9\s-]", "", text.lower())
    slug = re.sub(r"\s+", "-", slug.strip())
    return re.sub(r"-+", "-", slug)
