"""
Wine batch records and their CSV-backed store.

The scoring engine never reads or writes batches itself; callers load a
batch, run `evaluate_batch` and save the returned copy.
"""

import logging
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import numpy as np
import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from vintner.balance import calculate_wine_balance
from vintner.config import BATCH_STORE_PATH
from vintner.constants import ColumnNames, GrapeColor, SkewCurve
from vintner.error_handling import BatchNotFoundError, ErrorContext, wrap_validation_error
from vintner.rules import DEFAULT_RULE_CONFIG, RuleConfig
from vintner.schema import WineCharacteristics
from vintner.scoring import calculate_wine_combined_score

logger = logging.getLogger(__name__)

OPTIONAL_SCORE_COLUMNS = (ColumnNames.BORN_GRAPE_QUALITY, ColumnNames.BALANCE, ColumnNames.COMBINED_SCORE)


def _native(value: Any) -> Any:
    """NaN becomes None, numpy scalars become plain Python values."""
    if pd.isna(value):
        return None
    return value.item() if isinstance(value, np.generic) else value


class WineBatch(BaseModel):
    """A harvested batch of wine as persisted by the game."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    company_id: str
    vineyard_name: str
    variety: str
    color: GrapeColor
    harvest_year: int = Field(..., ge=1)
    quantity: float = Field(0.0, ge=0.0, description="Kilograms of grapes")
    characteristics: WineCharacteristics
    grape_quality: float = Field(..., ge=0.0, le=1.0)
    born_grape_quality: Optional[float] = Field(None, ge=0.0, le=1.0, description="Quality at harvest")
    balance: Optional[float] = Field(None, ge=0.0, le=1.0)
    combined_score: Optional[float] = Field(None, ge=0.0, le=1.0)

    @property
    def effective_grape_quality(self) -> float:
        """Quality at harvest when recorded, otherwise the current grape quality."""
        return self.born_grape_quality if self.born_grape_quality is not None else self.grape_quality

    def to_row(self) -> Dict[str, Any]:
        row = self.model_dump(exclude={'characteristics'}, mode='json')
        row.update(self.characteristics.to_dict())
        return row

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'WineBatch':
        data = {k: _native(v) for k, v in row.items()}
        characteristics = {c: data.pop(c) for c in ColumnNames.characteristic_columns()}
        return cls(characteristics=characteristics, **data)


def evaluate_batch(
    batch: WineBatch,
    rules: RuleConfig = DEFAULT_RULE_CONFIG,
    curve: Union[SkewCurve, str, None] = None
) -> WineBatch:
    """
    Score a batch's characteristics.

    Returns:
        Copy of the batch with balance and combined_score filled in
    """
    result = calculate_wine_balance(
        batch.characteristics,
        config=rules.adjustments,
        synergy_rules=rules.synergies,
    )
    combined = calculate_wine_combined_score(result.score, batch.effective_grape_quality, curve)
    return batch.model_copy(update={'balance': result.score, 'combined_score': combined})


class WineBatchStore:
    """
    Wine batch persistence on top of a pandas DataFrame saved as CSV.

    One row per batch, characteristics flattened into their own columns.
    """

    def __init__(self, path: Union[str, Path, None] = None):
        self.path = Path(path if path is not None else BATCH_STORE_PATH)

    def _read_frame(self) -> pd.DataFrame:
        if not self.path.exists():
            return pd.DataFrame(columns=ColumnNames.all_columns())
        with ErrorContext(f"reading batch store {self.path}"):
            # Only blank optional scores are missing; "NA" or "None" are valid names
            return pd.read_csv(
                self.path,
                dtype={
                    ColumnNames.ID: str,
                    ColumnNames.COMPANY_ID: str,
                    ColumnNames.VINEYARD_NAME: str,
                    ColumnNames.VARIETY: str,
                },
                keep_default_na=False,
                na_values={column: [""] for column in OPTIONAL_SCORE_COLUMNS},
                float_precision="round_trip",
            )

    def _write_frame(self, df: pd.DataFrame) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(self.path, index=False)

    def _to_batch(self, row: Dict[str, Any]) -> WineBatch:
        try:
            return WineBatch.from_row(row)
        except ValidationError as e:
            raise wrap_validation_error(e, f"loading batch {row.get(ColumnNames.ID)!r}") from e

    def load_batch(self, batch_id: str) -> WineBatch:
        """
        Load one batch.

        Raises:
            BatchNotFoundError: If no batch has this id
            DataValidationError: If the stored row is invalid
        """
        df = self._read_frame()
        matches = df[df[ColumnNames.ID] == batch_id]
        if matches.empty:
            raise BatchNotFoundError(batch_id)
        return self._to_batch(matches.to_dict(orient="records")[0])

    def save_batch(self, batch: WineBatch) -> WineBatch:
        """Insert the batch, replacing any stored batch with the same id."""
        df = self._read_frame()
        replaced = bool((df[ColumnNames.ID] == batch.id).any())
        df = df[df[ColumnNames.ID] != batch.id]
        row = pd.DataFrame([batch.to_row()], columns=ColumnNames.all_columns())
        df = row if df.empty else pd.concat([df, row], ignore_index=True)
        self._write_frame(df)
        logger.info(f"{'Updated' if replaced else 'Saved'} wine batch {batch.id} ({batch.variety})")
        return batch

    def delete_batch(self, batch_id: str) -> bool:
        """Remove a batch; returns False when it was not stored."""
        df = self._read_frame()
        remaining = df[df[ColumnNames.ID] != batch_id]
        if len(remaining) == len(df):
            return False
        self._write_frame(remaining)
        logger.info(f"Deleted wine batch {batch_id}")
        return True

    def list_batches(self, company_id: Optional[str] = None) -> List[WineBatch]:
        """All stored batches, optionally for one company, in insertion order."""
        df = self._read_frame()
        if company_id is not None:
            df = df[df[ColumnNames.COMPANY_ID] == company_id]
        return [self._to_batch(row) for row in df.to_dict(orient='records')]

    def to_dataframe(self, company_id: Optional[str] = None) -> pd.DataFrame:
        df = self._read_frame()
        if company_id is not None:
            df = df[df[ColumnNames.COMPANY_ID] == company_id]
        return df.reset_index(drop=True)
