"""Command-line interface for billcheck.

Usage:
    billcheck check <text-file> [--json] [--rules PATH]
    billcheck scan <image> [--ocr-url URL] [--json] [--rules PATH]
    billcheck parse <text-file> [--rules PATH]
"""
