"""
Workers Module - Async Thread Management
========================================
Contains QThread workers for non-blocking batch processing.

Components:
- ProcessWorker: Watermark removal/injection over a list of files
"""

from .process_worker import (
    ProcessWorker, ProcessConfig, ProcessResult, ProcessMode,
    process_single_image, generate_output_filename
)

__all__ = [
    "ProcessWorker",
    "ProcessConfig",
    "ProcessResult",
    "ProcessMode",
    "process_single_image",
    "generate_output_filename",
]
