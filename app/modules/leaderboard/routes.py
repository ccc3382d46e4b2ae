from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.leaderboard.schemas import LeaderboardResponse
from app.modules.leaderboard.service import LeaderboardService
from supabase import Client

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


def get_leaderboard_service(supabase: Client = Depends(get_supabase)) -> LeaderboardService:
    return LeaderboardService(supabase)


@router.get("", response_model=LeaderboardResponse)
async def get_leaderboard(service: LeaderboardService = Depends(get_leaderboard_service)):
    return {"leaderboard": service.get_leaderboard()}
