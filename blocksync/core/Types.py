from enum import Enum, auto


class PortDirection(Enum):
    INPUT = auto()
    OUTPUT = auto()


class PortFunction(Enum):
    VALUE = auto()      # expression plugged into a named slot
    STATEMENT = auto()  # previous/next chaining and nested statement bodies


class NodeKind(Enum):
    ENTRY = auto()
    STATEMENT = auto()
    EXPRESSION = auto()


class EventType(Enum):
    CREATE = "create"
    DELETE = "delete"
    CHANGE = "change"
    MOVE = "move"
    UI = "ui"
    VIEWPORT_CHANGE = "viewport_change"
    TOOLBOX_ITEM_SELECT = "toolbox_item_select"
    CLICK = "click"
    SELECTED = "selected"


# Events that never alter program structure.
COSMETIC_EVENTS = frozenset({
    EventType.UI,
    EventType.VIEWPORT_CHANGE,
    EventType.TOOLBOX_ITEM_SELECT,
    EventType.CLICK,
    EventType.SELECTED,
})
