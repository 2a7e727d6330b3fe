from dataclasses import dataclass
from typing import Any, Dict, Sequence

from mdnotebook.node_address import NodeAddress
from mdnotebook.notebook_action import NotebookAction
from mdnotebook.notebook_error import NotebookProtocolError


@dataclass(frozen=True)
class RunActionRequest:
    """
    Request to run one action of a document.

    This is what travels inside the editor's run command, so it is validated
    as soon as it comes back from the editor.

    Attributes:
        uri: Document URI
        source: Address of the block to run
        output: Address of the paired output block, if any
    """
    uri: str
    source: NodeAddress
    output: NodeAddress | None = None

    @classmethod
    def for_action(cls, uri: str, action: NotebookAction) -> "RunActionRequest":
        """
        Build the request that runs an action.

        Args:
            uri: Document URI
            action: The action

        Returns:
            The request
        """
        return cls(
            uri=uri,
            source=action.source.address,
            output=action.output.address if action.output is not None else None
        )

    def to_payload(self) -> Dict[str, Any]:
        """
        Convert the request to its JSON command payload.

        Returns:
            JSON-compatible dictionary
        """
        return {
            "uri": self.uri,
            "source": self.source.to_json(),
            "output": self.output.to_json() if self.output is not None else None
        }

    @classmethod
    def from_payload(cls, payload: Any) -> "RunActionRequest":
        """
        Decode a JSON command payload.

        Args:
            payload: Value received from the editor

        Returns:
            The decoded request

        Raises:
            NotebookProtocolError: If the payload is malformed
        """
        if not isinstance(payload, dict):
            raise NotebookProtocolError(f"Run request must be an object, got {type(payload).__name__}")

        uri = payload.get("uri")
        if not isinstance(uri, str) or not uri:
            raise NotebookProtocolError("Run request is missing a document URI")

        if "source" not in payload:
            raise NotebookProtocolError("Run request is missing a source address")

        source = NodeAddress.from_json(payload["source"])

        output = None
        if payload.get("output") is not None:
            output = NodeAddress.from_json(payload["output"])

        return cls(uri=uri, source=source, output=output)

    @classmethod
    def from_arguments(cls, arguments: Sequence[Any]) -> "RunActionRequest":
        """
        Decode the argument list of an executeCommand request.

        Args:
            arguments: Command arguments; exactly one payload is expected

        Returns:
            The decoded request

        Raises:
            NotebookProtocolError: If the arguments are malformed
        """
        if len(arguments) != 1:
            raise NotebookProtocolError(f"Run command takes exactly one argument, got {len(arguments)}")

        return cls.from_payload(arguments[0])
