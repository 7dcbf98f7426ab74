"""Custom exceptions for Capture Hi-C viewpoint design."""


class DesignError(Exception):
    """Base exception for all viewpoint design errors."""
    pass


class ParseError(DesignError):
    """Exception raised while reading anchor, bedGraph or chromInfo input."""

    def __init__(self, message: str, line_number: int = None, line_content: str = None):
        self.line_number = line_number
        self.line_content = line_content

        if line_number is not None:
            message = f"Line {line_number}: {message}"
        if line_content is not None:
            message = f"{message} (content: {line_content[:50]}...)"

        super().__init__(message)


class ConfigurationError(DesignError):
    """Exception raised for invalid design parameters or enzymes."""

    def __init__(self, message: str, config_file: str = None, parameter: str = None):
        self.config_file = config_file
        self.parameter = parameter

        if config_file is not None:
            message = f"Configuration error in {config_file}: {message}"
        if parameter is not None:
            message = f"{message} (parameter: {parameter})"

        super().__init__(message)


class GenomeAccessError(DesignError):
    """Exception raised when the reference sequence cannot be read."""

    def __init__(self, message: str, contig: str = None):
        self.contig = contig

        if contig is not None:
            message = f"{message} (contig: {contig})"

        super().__init__(message)


class RangeError(DesignError, ValueError):
    """Exception raised for an inverted coordinate range."""

    def __init__(self, from_pos: int, to_pos: int):
        self.from_pos = from_pos
        self.to_pos = to_pos
        super().__init__(f"Invalid range: to ({to_pos}) is smaller than from ({from_pos})")


class ViewPointError(DesignError):
    """Exception raised when a batch of viewpoints cannot be created."""
    pass
