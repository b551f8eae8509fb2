from enum import Enum


class RelationType(str, Enum):
    """Typed relation kinds carried by causal edges."""

    CAUSES = "causes"
    ENABLES = "enables"
    PREVENTS = "prevents"
    INCREASES = "increases"
    DECREASES = "decreases"
    CORRELATES_WITH = "correlates_with"
    REQUIRES = "requires"
    PRODUCES = "produces"
    INHIBITS = "inhibits"
    MODULATES = "modulates"
    TRIGGERS = "triggers"
    AMPLIFIES = "amplifies"
    MEDIATES = "mediates"


class NodeType(str, Enum):
    """Kinds of nodes stored in a causal graph."""

    CONCEPT = "concept"
    TOPIC = "topic"
    QUESTION = "question"
    STATEMENT = "statement"
    EVENT = "event"
    ENTITY = "entity"
    VARIABLE = "variable"


# Fixed ordering used for one-hot encodings
RELATION_TYPES = tuple(RelationType)
