# Force SQLModel table registration at test discovery time
from ringside.models.checkpoint import Checkpoint  # noqa: F401
