from app.services.store import EntityStore
from app.services.validators import Validators
from app.services.capabilities import Capabilities, Action, Grant
from app.services.workflow import Workflow, EntityKind

__all__ = [
    # Shared policy layer
    "EntityStore",
    "Validators",
    "Capabilities",
    "Action",
    "Grant",
    "Workflow",
    "EntityKind",
]
