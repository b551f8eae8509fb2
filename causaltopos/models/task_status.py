from enum import Enum


class RefinementPhase(str, Enum):
    """Phases reported while refining embeddings."""

    INITIALIZING_BACKEND = "initializing_backend"
    INITIALIZING = "initializing"
    PROCESSING_EDGES = "processing_edges"
    PROCESSING_TRIANGLES = "processing_triangles"
    COMBINING = "combining"
    COMPLETED = "completed"


# Progress checkpoints, in percent, reached when each phase starts
PHASE_PROGRESS = {
    RefinementPhase.INITIALIZING_BACKEND: 0,
    RefinementPhase.INITIALIZING: 5,
    RefinementPhase.PROCESSING_EDGES: 10,
    RefinementPhase.PROCESSING_TRIANGLES: 40,
    RefinementPhase.COMBINING: 70,
    RefinementPhase.COMPLETED: 100,
}
