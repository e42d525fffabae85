"""Data type compatibility between mapped columns."""

from typing import Optional

from config.models import DataType, TransformType
from config.rules import (
    COMPATIBLE_TYPES,
    CONVERSION_CONFIDENCE,
    DEFAULT_CONVERSION_CONFIDENCE,
    RECOMMENDED_TRANSFORMS,
    TRANSFORMATION_HINTS
)


class TypeCompatibility:
    """Decides whether a source column type can feed a target column type."""

    @staticmethod
    def are_compatible(source_type: DataType, target_type: DataType) -> bool:
        """
        Check whether two inferred types can be mapped onto each other.

        The relation is asymmetric: a string source is only compatible with
        mixed or unknown targets, never with number or date.
        """
        if source_type == target_type:
            return True
        return target_type in COMPATIBLE_TYPES.get(source_type, ())

    @staticmethod
    def conversion_confidence(source_type: DataType, target_type: DataType) -> float:
        """Confidence that values survive conversion from source to target type."""
        if source_type == target_type:
            return 1.0
        return CONVERSION_CONFIDENCE.get(
            (source_type, target_type),
            DEFAULT_CONVERSION_CONFIDENCE
        )

    @staticmethod
    def suggest_transformation(
        source_type: DataType,
        target_type: DataType
    ) -> Optional[str]:
        """Human-readable hint for the conversion, None when types are equal."""
        if source_type == target_type:
            return None
        return TRANSFORMATION_HINTS.get(
            (source_type, target_type),
            f"Convert {source_type.value} to {target_type.value}"
        )

    @staticmethod
    def recommended_transform(
        source_type: DataType,
        target_type: DataType
    ) -> TransformType:
        """Value transform to apply when mapping source onto target."""
        if source_type == target_type:
            return TransformType.NONE
        return RECOMMENDED_TRANSFORMS.get(
            (source_type, target_type),
            TransformType.NONE
        )
