"""Settings for the notebook language server."""

from dataclasses import dataclass, field
import json
import shlex
from typing import Any, Dict, List


@dataclass
class LspNotebookSettings:
    """
    Server-wide settings.

    The interpreter command is the same for every code block, whatever
    language the block declares.
    """
    command: List[str] = field(default_factory=lambda: ["sh"])
    run_in_document_directory: bool = True
    lens_title: str = "Run"

    @classmethod
    def create_default(cls) -> "LspNotebookSettings":
        """Create a new settings object with default values."""
        return cls()

    @classmethod
    def load(cls, path: str) -> "LspNotebookSettings":
        """
        Load settings from a JSON file.

        Args:
            path: Path to the settings file

        Returns:
            Settings object with loaded values

        Raises:
            json.JSONDecodeError: If file contains invalid JSON
            ValueError: If a setting has the wrong type
        """
        settings = cls.create_default()

        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Settings file {path} must contain a JSON object")

        settings.update(data)
        return settings

    def update(self, data: Dict[str, Any]) -> None:
        """
        Apply settings from a JSON-style dictionary.

        Keys use the editor's camelCase names; missing keys keep their current
        values.  Nothing is changed if any value is invalid.

        Args:
            data: Settings dictionary (e.g. LSP initializationOptions)

        Raises:
            ValueError: If a setting has the wrong type
        """
        command = self.command
        if "command" in data:
            value = data["command"]
            if isinstance(value, str):
                command = shlex.split(value)

            elif isinstance(value, list) and all(isinstance(arg, str) for arg in value):
                command = list(value)

            else:
                raise ValueError("'command' must be a string or a list of strings")

            if not command:
                raise ValueError("'command' cannot be empty")

        run_in_document_directory = data.get("runInDocumentDirectory", self.run_in_document_directory)
        if not isinstance(run_in_document_directory, bool):
            raise ValueError("'runInDocumentDirectory' must be true or false")

        lens_title = data.get("lensTitle", self.lens_title)
        if not isinstance(lens_title, str) or not lens_title:
            raise ValueError("'lensTitle' must be a non-empty string")

        self.command = command
        self.run_in_document_directory = run_in_document_directory
        self.lens_title = lens_title
