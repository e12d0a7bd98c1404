"""
Run logging for schedule imports.

Each command-line run gets its own directory under LOGS_PATH with one
DEBUG-level log file, mirrored to the console at INFO. The file opens with a
provenance header (invocation plus the settings that shape extraction) so a
log can be lined up with the debug trail the operator saw.

Context-specific wrappers live in contexts/{context}/logger.py.
"""

import os
import sys
from pathlib import Path
from typing import Optional, TextIO

from dotenv import load_dotenv
from loguru import logger

import mediabrief
from mediabrief.utils.timestamp import now

load_dotenv()

LOGS_PATH = Path(os.getenv("LOGS_PATH", "outs/logs"))

# Environment settings echoed into the provenance header. API keys are never logged.
RUN_SETTINGS = (
    "LLM_PROVIDER",
    "LLM_MODEL",
    "LLM_MAX_TOKENS",
    "SCHEDULE_MAX_CONTENT_CHARS",
    "PDF_RENDER_DPI",
    "PDF_MAX_PAGES",
    "DEFAULT_BUFFER_DAYS",
    "SPEC_CATALOG_PATH",
)

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <7} | {message}"
CONSOLE_FORMAT = "{time:HH:mm:ss} | <level>{level: <7}</level> | <level>{message}</level>"

HEADER_RULE = "=" * 80


def run_log_dir(run_name: str, base: Optional[Path] = None) -> Path:
    """Directory for one run, e.g. outs/logs/import_20251114_123456."""
    return (base or LOGS_PATH) / f"{run_name}_{now()}"


def setup_run_logger(
    run_name: str,
    log_dir: Path,
    provenance: Optional[dict] = None,
    console: TextIO = sys.stderr,
) -> Path:
    """
    Route loguru output for one import run to a log file and the console.

    Replaces any previously configured sinks. The console is stderr so that
    `--json` output on stdout stays machine-readable.

    Args:
        run_name: Log file stem (e.g., "import")
        log_dir: Directory for this run (created if missing)
        provenance: Extra header lines, e.g. {"LLM provider": "openai/gpt-4o-mini"}
        console: Stream for INFO and above

    Returns:
        Path to the log file
    """
    log_dir.mkdir(exist_ok=True, parents=True)
    log_file = log_dir / f"{run_name}.log"

    logger.remove()
    logger.add(log_file, format=FILE_FORMAT, level="DEBUG")
    logger.add(console, format=CONSOLE_FORMAT, level="INFO", colorize=console.isatty())

    log_provenance(provenance)
    return log_file


def log_provenance(extra_context: Optional[dict] = None) -> None:
    """Write the run header: version, invocation, configured settings, then extra_context."""
    logger.info(HEADER_RULE)
    logger.info(f"mediabrief {mediabrief.__version__}")
    logger.info(f"Command: {' '.join(sys.argv)}")
    logger.info(f"Working directory: {Path.cwd()}")
    logger.info(f"Python: {sys.version.split()[0]}")

    for name in RUN_SETTINGS:
        value = os.getenv(name)
        if value:
            logger.info(f"{name}: {value}")

    for key, value in (extra_context or {}).items():
        logger.info(f"{key}: {value}")

    logger.info(HEADER_RULE)
