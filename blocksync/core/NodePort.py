import logging

from .Types import PortDirection, PortFunction

# Get a logger for this module
logger = logging.getLogger(__name__)


class NodePort:
    def __init__(self,
                 node_id: str,
                 port_name: str,
                 direction: PortDirection,
                 function: PortFunction):
        self.node_id = node_id
        self.port_name = port_name
        self.direction = direction
        self.function = function

    def isValuePort(self) -> bool:
        return self.function == PortFunction.VALUE

    def isStatementPort(self) -> bool:
        return self.function == PortFunction.STATEMENT

    def __repr__(self):
        return f"{type(self).__name__}({self.node_id}.{self.port_name})"


# A named slot accepting one expression node.
class InputValuePort(NodePort):
    def __init__(self, node_id: str, port_name: str):
        super().__init__(node_id, port_name, PortDirection.INPUT, PortFunction.VALUE)


# The single "output" plug of an expression node.
class OutputValuePort(NodePort):
    def __init__(self, node_id: str, port_name: str = "output"):
        super().__init__(node_id, port_name, PortDirection.OUTPUT, PortFunction.VALUE)


# The "previous" notch of a statement node.
class InputStatementPort(NodePort):
    def __init__(self, node_id: str, port_name: str = "previous"):
        super().__init__(node_id, port_name, PortDirection.INPUT, PortFunction.STATEMENT)


# The "next" notch of a statement node, or a nested statement body (BODY, ELSE_BODY ...).
class OutputStatementPort(NodePort):
    def __init__(self, node_id: str, port_name: str = "next"):
        super().__init__(node_id, port_name, PortDirection.OUTPUT, PortFunction.STATEMENT)
