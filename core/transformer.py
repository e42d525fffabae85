"""Per-column value transformations driven by column mappings."""

from typing import Any, Dict, List, Optional, Sequence, Tuple, Type
from abc import ABC, abstractmethod
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
import logging
import numbers

from dateutil import parser

from config.models import (
    DEFAULT_DATE_FORMAT,
    DEFAULT_DECIMALS,
    CellValue,
    MappingEntry,
    TransformType
)
from core.exceptions import TransformError
from core.type_detector import is_null, parse_number


class BaseTransform(ABC):
    """Base class for value transforms."""

    @abstractmethod
    def process(self, value: CellValue) -> CellValue:
        """Transform a non-null cell value."""
        pass


class IdentityTransform(BaseTransform):

    def process(self, value: CellValue) -> CellValue:
        return value


class UppercaseTransform(BaseTransform):

    def process(self, value: CellValue) -> CellValue:
        return str(value).upper()


class LowercaseTransform(BaseTransform):

    def process(self, value: CellValue) -> CellValue:
        return str(value).lower()


class DateFormatTransform(BaseTransform):
    """Reformats dates and ISO date strings with a strftime pattern."""

    def __init__(self, format: str = DEFAULT_DATE_FORMAT):
        self.format = format

    def process(self, value: CellValue) -> CellValue:
        if isinstance(value, datetime):
            return value.strftime(self.format)
        if isinstance(value, str):
            try:
                return parser.isoparse(value.strip()).strftime(self.format)
            except (ValueError, OverflowError):
                return value
        return str(value)


class NumberFormatTransform(BaseTransform):
    """Rounds numbers and numeric strings to a fixed number of decimals."""

    def __init__(self, decimals: int = DEFAULT_DECIMALS):
        self.decimals = int(decimals)

    def process(self, value: CellValue) -> CellValue:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            number = parse_number(value)
            if number is None:
                return value
            value = number
        if isinstance(value, numbers.Integral):
            return int(value)
        if isinstance(value, numbers.Real):
            return self._round_half_up(float(value))
        return value

    def _round_half_up(self, value: float) -> float:
        # Halves round away from zero: 2.5 -> 3.0, -0.125 -> -0.13
        quantum = Decimal(1).scaleb(-self.decimals)
        try:
            return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))
        except InvalidOperation:
            # Non-finite, or more digits than the decimal context holds
            return value


class TransformRegistry:
    """Registry for transform types and instances."""

    def __init__(self):
        self._transforms: Dict[str, Type[BaseTransform]] = {}
        self._register_defaults()

    def _register_defaults(self) -> None:
        """Register default transforms."""
        self.register(TransformType.NONE.value, IdentityTransform)
        self.register(TransformType.UPPERCASE.value, UppercaseTransform)
        self.register(TransformType.LOWERCASE.value, LowercaseTransform)
        self.register(TransformType.DATE_FORMAT.value, DateFormatTransform)
        self.register(TransformType.NUMBER_FORMAT.value, NumberFormatTransform)

    def register(self, name: str, transform_class: Type[BaseTransform]) -> None:
        """
        Register a new transform type.

        Args:
            name: Name to register the transform under
            transform_class: Transform class to register
        """
        self._transforms[name] = transform_class

    def create(self, name: str, **kwargs: Any) -> BaseTransform:
        """
        Create a transform instance.

        Args:
            name: Name of the transform type
            **kwargs: Transform parameters

        Returns:
            BaseTransform: Configured transform instance

        Raises:
            TransformError: If the transform type is unknown or rejects the parameters
        """
        transform_class = self._transforms.get(name)
        if not transform_class:
            raise TransformError(f"Unknown transform type: {name}", name)
        try:
            return transform_class(**kwargs)
        except (TypeError, ValueError) as e:
            raise TransformError(f"Invalid parameters for transform {name}: {e}", name)


# Global registry instance
registry = TransformRegistry()


def register_transform(name: str, transform_class: Type[BaseTransform]) -> None:
    """Register a new transform type globally."""
    registry.register(name, transform_class)


class DataTransformer:
    """Applies mapping entries to a file's rows."""

    def __init__(self, transform_registry: Optional[TransformRegistry] = None):
        self.registry = transform_registry or registry

    def _create_transform(self, entry: MappingEntry) -> BaseTransform:
        transform = entry.transform or TransformType.NONE
        name = transform.value if isinstance(transform, TransformType) else str(transform)
        return self.registry.create(name, **(entry.transform_params or {}))

    def transform(
        self,
        rows: Sequence[Sequence[CellValue]],
        headers: Sequence[str],
        entries: Sequence[MappingEntry]
    ) -> Tuple[List[str], List[List[CellValue]]]:
        """
        Project and transform rows according to mapping entries.

        Args:
            rows: Source rows
            headers: Source headers
            entries: Mapping entries, in output column order

        Returns:
            Tuple[List[str], List[List[CellValue]]]: Target headers and new rows
        """
        column_index = {header: index for index, header in enumerate(headers)}
        new_headers = [entry.target_column for entry in entries]
        plan = [
            (column_index.get(entry.source_column), self._create_transform(entry))
            for entry in entries
        ]

        missing = [e.source_column for e in entries if e.source_column not in column_index]
        if missing:
            logging.warning(f"Source columns not found, filled with nulls: {missing}")

        new_rows = []
        for row in rows:
            new_row = []
            for source_index, transform in plan:
                value = row[source_index] if source_index is not None else None
                if not is_null(value):
                    value = transform.process(value)
                new_row.append(value)
            new_rows.append(new_row)

        return new_headers, new_rows
