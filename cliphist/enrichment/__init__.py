"""Text recognition enrichment for image entries."""
from cliphist.enrichment.pipeline import EnrichmentPipeline, TextRecognizer
from cliphist.enrichment.tesseract import TesseractRecognizer

__all__ = ["EnrichmentPipeline", "TesseractRecognizer", "TextRecognizer"]
