"""Output serializers."""

from .formatter import assignments_to_csv, optimization_output_to_json

__all__ = ["optimization_output_to_json", "assignments_to_csv"]
