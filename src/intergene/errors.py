"""Exceptions raised while reading annotation, sequence and depth files."""


class ColumnMismatchError(ValueError):
    """A tab separated line did not have the expected number of columns."""

    def __init__(self, line_number: int, expected: int, found: int, line: str = "") -> None:
        self.line_number = line_number
        self.expected = expected
        self.found = found
        super().__init__(f"Line {line_number}: expected {expected} tab separated columns, found {found}: {line!r}")


class CoordinateParseError(ValueError):
    """A coordinate column could not be parsed as an integer."""

    def __init__(self, line_number: int, column: str, value: str) -> None:
        self.line_number = line_number
        self.column = column
        self.value = value
        super().__init__(f"Line {line_number}: could not parse {column} coordinate {value!r} as an integer")


class OutOfRangeError(IndexError):
    """Requested coordinates lie outside of the reference sequence."""

    def __init__(self, start: int, end: int, reference_length: int) -> None:
        self.start = start
        self.end = end
        self.reference_length = reference_length
        super().__init__(f"Coordinates [{start}-{end}] are outside of the reference sequence (length {reference_length})")
