# Force SQLModel table registration at test discovery time
# so every table exists before a test engine runs create_all()
from chessclub.models.match import Match  # noqa: F401
from chessclub.models.player import Player  # noqa: F401
from chessclub.models.schedule import Schedule  # noqa: F401
