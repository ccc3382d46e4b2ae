from pydantic import BaseModel
from typing import List, Optional


class LeaderboardEntry(BaseModel):
    user_id: str
    name: str
    avatar_url: Optional[str] = None
    automations: int


class LeaderboardResponse(BaseModel):
    leaderboard: List[LeaderboardEntry]
