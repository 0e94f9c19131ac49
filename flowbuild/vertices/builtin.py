"""Built-in vertex types registered with every VertexRegistry."""

from typing import Any, Dict


class PassthroughVertex:
    """Forward dependency outputs unchanged.

    With ``config["value"]`` set, the value is added under the ``"value"``
    key next to the dependency outputs. Useful as a join point and in tests.
    """

    async def execute(self, config: Dict[str, Any], inputs: Dict[str, Any]) -> Dict[str, Any]:
        output = dict(inputs)
        if "value" in config:
            output["value"] = config["value"]
        return output


class ConstantVertex:
    """Emit ``config["value"]`` regardless of inputs."""

    async def execute(self, config: Dict[str, Any], inputs: Dict[str, Any]) -> Any:
        return config.get("value")
