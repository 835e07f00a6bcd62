"""
AI content generation for learning paths.
"""
from skilltree.generation.content_producer import (
    ContentProducer,
    GeminiContentProducer,
    extract_json,
)

__all__ = [
    "ContentProducer",
    "GeminiContentProducer",
    "extract_json",
]
