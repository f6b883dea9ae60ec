"""projectrag - retrieval over project and container files."""

from projectrag.models import ContainerScope, ProjectScope
from projectrag.service import RagService

__version__ = "0.1.0"

__all__ = ["RagService", "ProjectScope", "ContainerScope", "__version__"]
