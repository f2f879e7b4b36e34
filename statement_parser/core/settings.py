"""
Heuristic settings loaded from YAML templates.
"""
import yaml
from functools import lru_cache
from pathlib import Path
from typing import List, Optional
import logging

from pydantic import BaseModel, ConfigDict, ValidationError

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent.parent / "templates"
DEFAULT_SETTINGS_PATH = TEMPLATES_DIR / "default.yaml"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class HeaderKeywords(_Frozen):
    date_keywords: List[str]
    description_keywords: List[str]
    amount_keywords: List[str]


class MultiLineHeaderKeywords(_Frozen):
    date_keywords: List[str]
    description_keywords: List[str]
    # every keyword in the list must appear on the same line
    debit_keywords: List[str]
    credit_keywords: List[str]


class ScanWindows(_Frozen):
    pattern_scan_lines: int = 200
    multi_line_header_lines: int = 100
    data_start_lines: int = 50
    sample_rows: int = 5


class RowLimits(_Frozen):
    max_invalid_rows: int = 5
    max_blank_rows: int = 3
    max_amount_digits: int = 15
    min_description_length: int = 3


class HeuristicSettings(_Frozen):
    """Keyword lists, scan windows and limits used by detection and row parsing."""
    settings_id: str = "default"
    header: HeaderKeywords
    multi_line_header: MultiLineHeaderKeywords
    windows: ScanWindows = ScanWindows()
    limits: RowLimits = RowLimits()
    end_of_table_keywords: List[str] = ["balance", "total", "summary"]


@lru_cache(maxsize=8)
def _load_settings_file(path: Path) -> HeuristicSettings:
    if not path.exists():
        raise ValueError(f"Settings file not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Settings file must contain a mapping: {path}")

    try:
        settings = HeuristicSettings.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid settings in {path}: {e}") from e

    logger.debug(f"Loaded heuristic settings: {settings.settings_id}")
    return settings


def load_settings(path: Optional[Path] = None) -> HeuristicSettings:
    """
    Load heuristic settings from a YAML file.

    Args:
        path: YAML file to load; defaults to the bundled ``default.yaml``

    Returns:
        Frozen HeuristicSettings
    """
    return _load_settings_file(Path(path) if path else DEFAULT_SETTINGS_PATH)
