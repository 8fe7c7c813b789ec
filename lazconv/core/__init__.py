"""Core conversion module for lazconv."""

from lazconv.core.chunking import extract_chunk, needs_chunking, plan_chunks
from lazconv.core.models import ConversionResult, FileChunk
from lazconv.core.orchestrator import BatchOrchestrator
from lazconv.core.pipeline import ConversionPipeline

__all__ = [
    "BatchOrchestrator",
    "ConversionPipeline",
    "ConversionResult",
    "FileChunk",
    "extract_chunk",
    "needs_chunking",
    "plan_chunks",
]
