"""Runtime infrastructure for billcheck.

This package provides process/runtime services including:
- Logging setup via get_logger()
- Path resolution via get_paths(), ProjectPaths
- Rule loading via load_jurisdiction_rules(), load_item_category_rules()
- The OCR service client via call_ocr_service()

Usage:
    from billcheck.runtime import get_logger, get_paths

    logger = get_logger(__name__)
    paths = get_paths()
    print(paths.root, paths.config)
"""

from billcheck.runtime.bill_pipeline import OCRServiceUnavailable, OcrText, call_ocr_service, default_ocr_url
from billcheck.runtime.logging import (
    DEFAULT_LOG_LEVEL,
    LOG_FORMAT,
    LOG_FORMAT_DEBUG,
    configure_logging,
    get_logger,
    set_log_level,
)
from billcheck.runtime.paths import ProjectPaths, get_paths, reset_paths
from billcheck.runtime.rules import clear_rule_caches, load_item_category_rules, load_jurisdiction_rules

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "set_log_level",
    "DEFAULT_LOG_LEVEL",
    "LOG_FORMAT",
    "LOG_FORMAT_DEBUG",
    # Rules
    "load_jurisdiction_rules",
    "load_item_category_rules",
    "clear_rule_caches",
    # Paths
    "get_paths",
    "reset_paths",
    "ProjectPaths",
    # OCR
    "OCRServiceUnavailable",
    "OcrText",
    "call_ocr_service",
    "default_ocr_url",
]
