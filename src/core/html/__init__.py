"""
HTML validation and assembly of translated pages.
"""
from .validator import validate_html, ValidationIssue, ValidationResult
from .assembler import HtmlAssembler, extract_full_document

__all__ = [
    'validate_html',
    'ValidationIssue',
    'ValidationResult',
    'HtmlAssembler',
    'extract_full_document',
]
