"""Reconciliation config: ERP column names and export naming, loaded from YAML."""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from stock_count.config import RECONCILIATION_CONFIG_PATH
from stock_count.utils.logger import get_logger

logger = get_logger("stock_count.reconciliation_config")

_config: Optional["ReconciliationConfig"] = None


class ColumnNames(BaseModel):
    product_code: str = "Material"
    system_quantity: str = "Libre utilización"
    description: Optional[str] = "Texto breve de material"


class ExportSettings(BaseModel):
    sheet_name: str = "Reporte de Comparación"
    filename_prefix: str = "reporte_comparacion"
    movements_sheet_name: str = "Historial de Movimientos"
    movements_filename_prefix: str = "historial_movimientos"


class ReconciliationConfig(BaseModel):
    columns: ColumnNames = Field(default_factory=ColumnNames)
    unit_value_keywords: list[str] = Field(default_factory=lambda: ["valor", "value", "cost", "precio"])
    export: ExportSettings = Field(default_factory=ExportSettings)


def _get_config_path() -> Path:
    raw = os.environ.get("RECONCILIATION_CONFIG_PATH", "").strip()
    if raw:
        return Path(raw)
    return RECONCILIATION_CONFIG_PATH


def load_config() -> ReconciliationConfig:
    """Load and cache the reconciliation config. Raises FileNotFoundError or ValueError."""
    global _config
    if _config is not None:
        return _config
    path = _get_config_path()
    if not path.exists():
        raise FileNotFoundError(
            f"Reconciliation config not found: {path}. "
            "Set RECONCILIATION_CONFIG_PATH or create config/reconciliation.yaml."
        )
    try:
        raw: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in reconciliation config {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ValueError(f"Reconciliation config must be a YAML object (dict), got {type(raw)}")
    try:
        _config = ReconciliationConfig.model_validate(raw)
    except ValidationError as e:
        raise ValueError(f"Invalid reconciliation config {path}: {e}") from e
    logger.info(
        "reconciliation_config.loaded",
        path=str(path),
        product_code_column=_config.columns.product_code,
        system_quantity_column=_config.columns.system_quantity,
    )
    return _config
