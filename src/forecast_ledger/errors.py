"""File-level failures raised while parsing a forecast grid.

Row and cell problems never raise; they only drop the affected row or
column from the output.
"""

from __future__ import annotations


class ForecastError(ValueError):
    """Base class for fatal parse failures."""

    code = "forecast_error"


class EmptyFileError(ForecastError):
    code = "empty_file"

    def __init__(self, message: str = "File is empty") -> None:
        super().__init__(message)


class MissingCategoryColumnError(ForecastError):
    code = "missing_category_column"

    def __init__(
        self,
        message: str = (
            'No "Category" column found. '
            'Please ensure your file has a "Category" header.'
        ),
    ) -> None:
        super().__init__(message)


class NoDateColumnsError(ForecastError):
    code = "no_date_columns"

    def __init__(
        self, message: str = "No valid date columns found to the right of Category column."
    ) -> None:
        super().__init__(message)


class EmptyDatasetError(ForecastError):
    code = "empty_dataset"

    def __init__(
        self,
        message: str = (
            "No data rows found. "
            "Please ensure your file has data below the header row."
        ),
    ) -> None:
        super().__init__(message)


class UnsupportedFormatError(ForecastError):
    code = "unsupported_format"

    def __init__(self, suffix: str) -> None:
        self.suffix = suffix
        super().__init__(
            f"Unsupported file type: {suffix!r}. Use .csv, .xlsx, or .xls"
        )


class MissingRequiredColumnError(ForecastError):
    code = "missing_required_column"

    def __init__(self, column: str) -> None:
        self.column = column
        super().__init__(f'No "{column}" column found.')
