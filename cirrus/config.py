"""Preferences file: per-table column order and saved filter conditions.

One JSON document, rewritten wholesale on every save::

    {
      "dynamodb": {
        "table_column_preferences": {"orders": ["pk", "sk", "status"]},
        "filter_condition_preferences": {
          "orders": [{"column": "status", "operator": "==", "value": "open"}]
        }
      }
    }

There is no locking and no merge: the last writer wins. Only one cirrus
process should use a given file at a time.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from .errors import PersistenceError
from .services.dynamo.filters import FilterCondition

logger = logging.getLogger(__name__)


class DynamoPreferences(BaseModel):
    table_column_preferences: dict[str, list[str]] = Field(default_factory=dict)
    filter_condition_preferences: dict[str, list[FilterCondition]] = Field(default_factory=dict)


class Preferences(BaseModel):
    dynamodb: DynamoPreferences = Field(default_factory=DynamoPreferences)

    def get_table_columns(self, table: str) -> list[str] | None:
        return self.dynamodb.table_column_preferences.get(table)

    def set_table_columns(self, table: str, columns: list[str]) -> None:
        self.dynamodb.table_column_preferences[table] = list(columns)

    def get_filter_conditions(self, table: str) -> list[FilterCondition]:
        return list(self.dynamodb.filter_condition_preferences.get(table) or [])

    def set_filter_conditions(self, table: str, conditions: list[FilterCondition]) -> None:
        self.dynamodb.filter_condition_preferences[table] = list(conditions)


class ConfigStore:
    """Load/save :class:`Preferences` at a fixed path."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Preferences:
        """Read the preferences file.

        A missing file yields defaults.

        Raises:
            PersistenceError: if the file exists but cannot be read or parsed.
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return Preferences()
        except UnicodeDecodeError as exc:
            raise PersistenceError(f"malformed preferences file {self.path}: {exc}") from exc
        except OSError as exc:
            raise PersistenceError(f"cannot read {self.path}: {exc}") from exc

        try:
            return Preferences.model_validate(json.loads(raw))
        except (json.JSONDecodeError, PydanticValidationError) as exc:
            raise PersistenceError(f"malformed preferences file {self.path}: {exc}") from exc

    def save(self, prefs: Preferences) -> None:
        """Rewrite the whole preferences file.

        Raises:
            PersistenceError: on any filesystem failure.
        """
        data = json.dumps(prefs.model_dump(mode="json"), indent=2)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(data + "\n", encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(f"cannot write {self.path}: {exc}") from exc
        logger.debug("preferences saved to %s", self.path)
