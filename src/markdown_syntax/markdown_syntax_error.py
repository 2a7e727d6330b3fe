class MarkdownSyntaxError(Exception):
    """Raised when a Markdown document cannot be turned into a syntax tree."""

    def __init__(self, message: str, line: int | None = None):
        """
        Initialize a syntax error.

        Args:
            message: Error message
            line: Zero-based line at which parsing gave up, if known
        """
        super().__init__(message)
        self.line = line
