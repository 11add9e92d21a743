"""Spreadsheet loaders for XLSX, CSV and TSV."""
from profile_batch_core.ingest.loaders.base import BaseLoader
from profile_batch_core.ingest.loaders.csv import CSVLoader
from profile_batch_core.ingest.loaders.tsv import TSVLoader
from profile_batch_core.ingest.loaders.xlsx import XLSXLoader

__all__ = ["BaseLoader", "CSVLoader", "TSVLoader", "XLSXLoader"]
