# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from worldcup.models.item import WorldCupItem  # noqa: F401
from worldcup.models.match import Match  # noqa: F401
from worldcup.models.tournament import Tournament  # noqa: F401
from worldcup.models.worldcup import WorldCup  # noqa: F401
