"""I/O utilities: YAML/JSON input loaders and CSV import/export."""

from .export_csv import assignments_dataframe, export_assignments_csv, import_assignments_csv
from .loaders import load_employees, load_locked_shifts, load_overrides, load_staffing_needs

__all__ = [
    "assignments_dataframe",
    "export_assignments_csv",
    "import_assignments_csv",
    "load_employees",
    "load_locked_shifts",
    "load_overrides",
    "load_staffing_needs",
]
