"""File format helpers used by rules."""

from lintloom.formats.markdown import (
    FrontmatterResult,
    ImportRef,
    count_lines,
    extract_frontmatter,
    extract_imports,
    fenced_lines,
    frontmatter_field_line,
    strip_code_blocks,
)

__all__ = [
    "FrontmatterResult",
    "ImportRef",
    "count_lines",
    "extract_frontmatter",
    "extract_imports",
    "fenced_lines",
    "frontmatter_field_line",
    "strip_code_blocks",
]
