"""Ingestion adapters for importing exchange transaction exports."""

from cryptobasis.ingestion.base import BaseAdapter, ParsedCSV
from cryptobasis.ingestion.binance import BinanceAdapter
from cryptobasis.ingestion.coinbase import CoinbaseAdapter
from cryptobasis.ingestion.detector import detect_format, read_csv
from cryptobasis.ingestion.generic import GenericAdapter
from cryptobasis.ingestion.parser import parse_csv, parse_csv_file

__all__ = [
    "BaseAdapter",
    "BinanceAdapter",
    "CoinbaseAdapter",
    "GenericAdapter",
    "ParsedCSV",
    "detect_format",
    "parse_csv",
    "parse_csv_file",
    "read_csv",
]
