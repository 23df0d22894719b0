"""
Services Layer

Pure business logic services that:
- Accept domain inputs (competitors, categories, sessions)
- Return domain outputs (new competitor lists, groups, brackets, diffs)
- Do NOT depend on HTTP request/response objects
- Do NOT mutate their inputs
"""

# Force SQLModel table registration at test discovery time
from ringside.models.checkpoint import Checkpoint  # noqa: F401
