"""
FastAPI application for the Dynasty League History API.
"""

import logging
from datetime import datetime
from typing import Dict, Optional, Tuple
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Depends, Query, Path
from fastapi.middleware.cors import CORSMiddleware

from backend.config import settings
from backend.dependencies import (
    get_redis_service, get_sleeper_service, get_player_cache_service, get_season_cache_service,
    get_history_resolver, get_season_data_reconciler, get_snapshot, get_transaction_history_service
)
from backend.api_models import (
    ErrorResponse, HealthResponse, SeasonMapResponse, DashboardResponse, TeamDetailsResponse,
    ScorecardResponse, PlayerHistoryResponse, CacheClearResponse
)
from backend.services.redis_service import RedisService
from backend.services.history_service import HistoryResolver, available_seasons
from backend.services.season_cache_service import SeasonCacheService
from backend.services.season_data_service import SeasonDataReconciler, LeagueDataUnavailableError
from backend.services.snapshot_service import ProcessSnapshot, load_snapshot
from backend.services.transaction_history_service import TransactionHistoryService, get_player_name
from backend.services import league_stats

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""

    # Startup
    logger.info("🏈 Starting Dynasty League History API")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Log Level: {settings.log_level}")
    logger.info(f"API Port: {settings.api_port}")

    redis_service = get_redis_service()
    if redis_service is None:
        logger.warning("Redis unavailable - season and player caching disabled")

    sleeper_service = get_sleeper_service()
    app.state.snapshot = await load_snapshot(sleeper_service, get_player_cache_service())

    yield

    # Shutdown
    logger.info("🛑 Shutting down Dynasty League History API")
    await sleeper_service.aclose()
    if redis_service is not None:
        redis_service.close()
        logger.info("Redis connection closed")
    logger.info("✅ Shutdown complete")


# Initialize FastAPI application
app = FastAPI(
    title="Dynasty League History API",
    version=API_VERSION,
    description="Sleeper league history, standings, trends and player transaction narratives",
    docs_url="/docs",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,
)


def _league_unavailable(error: LeagueDataUnavailableError) -> HTTPException:
    logger.warning(f"League data unavailable for {error.league_id}: {error.reason}")
    return HTTPException(
        status_code=404,
        detail=ErrorResponse(
            error="LEAGUE_DATA_UNAVAILABLE",
            message=str(error),
            details={"league_id": error.league_id}
        ).model_dump()
    )


def _internal_error(error_code: str, message: str, details: Dict, error: Exception) -> HTTPException:
    logger.error(f"{message}: {error}")
    return HTTPException(
        status_code=500,
        detail=ErrorResponse(
            error=error_code,
            message=message,
            details={**details, "error": str(error)}
        ).model_dump()
    )


async def _select_season(league_id: str, season: Optional[str], resolver: HistoryResolver,
                         snapshot: ProcessSnapshot) -> Tuple[Dict[str, str], str, str]:
    """Resolve the league history and pick the requested season (default: the starting league's)."""
    seasons_map = await resolver.resolve_season_league_map(league_id, snapshot.nfl_state.season)
    selected = season or next(iter(seasons_map))
    if selected not in seasons_map:
        raise HTTPException(
            status_code=404,
            detail=ErrorResponse(
                error="SEASON_NOT_FOUND",
                message=f"Season {selected} is not part of league {league_id}'s history",
                details={"league_id": league_id, "season": selected,
                         "available_seasons": available_seasons(seasons_map)}
            ).model_dump()
        )
    return seasons_map, selected, seasons_map[selected]


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "message": "Dynasty League History API",
        "version": API_VERSION,
        "endpoints": {
            "health": "/health",
            "docs": "/docs",
            "seasons": "/api/leagues/{league_id}/seasons",
            "dashboard": "/api/leagues/{league_id}/dashboard",
            "player_history": "/api/leagues/{league_id}/players/{player_id}/history"
        },
        "default_league_id": settings.SLEEPER_DEFAULT_LEAGUE_ID,
        "timestamp": datetime.utcnow().isoformat()
    }


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(
    redis_service: Optional[RedisService] = Depends(get_redis_service),
    snapshot: ProcessSnapshot = Depends(get_snapshot)
):
    """Health check endpoint."""
    redis_connected = redis_service is not None and redis_service.is_connected()

    return HealthResponse(
        status="healthy",
        redis_connected=redis_connected,
        nfl_season=snapshot.nfl_state.season,
        players_loaded=len(snapshot.players),
        timestamp=datetime.utcnow().isoformat(),
        version=API_VERSION
    )


@app.get("/api/leagues/{league_id}/seasons", response_model=SeasonMapResponse, tags=["Leagues"])
async def get_league_seasons(
    league_id: str,
    resolver: HistoryResolver = Depends(get_history_resolver),
    snapshot: ProcessSnapshot = Depends(get_snapshot)
):
    """Resolve a league's history into one league ID per season."""
    try:
        current_season = snapshot.nfl_state.season
        seasons_map = await resolver.resolve_season_league_map(league_id, current_season)
        return SeasonMapResponse(
            league_id=league_id,
            current_season=current_season,
            seasons=seasons_map,
            available_seasons=available_seasons(seasons_map)
        )
    except Exception as e:
        raise _internal_error("SEASONS_ERROR", "Failed to resolve league history", {"league_id": league_id}, e)


@app.get("/api/leagues/{league_id}/dashboard", response_model=DashboardResponse, tags=["Leagues"])
async def get_league_dashboard(
    league_id: str,
    season: Optional[str] = Query(None, description="Season year (default: the starting league's season)"),
    resolver: HistoryResolver = Depends(get_history_resolver),
    reconciler: SeasonDataReconciler = Depends(get_season_data_reconciler),
    snapshot: ProcessSnapshot = Depends(get_snapshot)
):
    """
    Load one season of a league with standings and trending teams.
    """
    try:
        seasons_map, selected, season_league_id = await _select_season(league_id, season, resolver, snapshot)
        data = await reconciler.load_season_data(season_league_id, selected, snapshot.nfl_state)

        return DashboardResponse(
            league_id=league_id,
            season=selected,
            season_league_id=season_league_id,
            available_seasons=available_seasons(seasons_map),
            league=data.league,
            users=data.users,
            rosters=data.rosters,
            matchups=data.matchups,
            standings=league_stats.get_standings(data.rosters, data.users),
            trending_teams=league_stats.get_trending_teams(data.matchups, data.users, rosters=data.rosters),
            available_weeks=league_stats.get_available_weeks(data.matchups)
        )
    except LeagueDataUnavailableError as e:
        raise _league_unavailable(e)
    except HTTPException:
        raise
    except Exception as e:
        raise _internal_error("DASHBOARD_ERROR", "Failed to load league dashboard",
                              {"league_id": league_id, "season": season}, e)


@app.get("/api/leagues/{league_id}/teams/{roster_id}", response_model=TeamDetailsResponse, tags=["Teams"])
async def get_team_details(
    league_id: str,
    roster_id: int = Path(..., ge=1, description="Roster ID"),
    season: Optional[str] = Query(None, description="Season year (default: the starting league's season)"),
    resolver: HistoryResolver = Depends(get_history_resolver),
    reconciler: SeasonDataReconciler = Depends(get_season_data_reconciler),
    snapshot: ProcessSnapshot = Depends(get_snapshot)
):
    """Season stats and starters/bench split for one roster."""
    try:
        _, selected, season_league_id = await _select_season(league_id, season, resolver, snapshot)
        data = await reconciler.load_season_data(season_league_id, selected, snapshot.nfl_state)

        roster = next((r for r in data.rosters if r.roster_id == roster_id), None)
        if roster is None:
            raise HTTPException(
                status_code=404,
                detail=ErrorResponse(
                    error="ROSTER_NOT_FOUND",
                    message=f"Roster {roster_id} not found in league {season_league_id}",
                    details={"league_id": season_league_id, "roster_id": roster_id, "season": selected}
                ).model_dump()
            )

        owner = next((u for u in data.users if u.user_id == roster.owner_id), None)
        stats = league_stats.get_team_stats(data.matchups, roster, data.users, data.league)
        return TeamDetailsResponse(
            league_id=season_league_id,
            season=selected,
            roster_id=roster_id,
            team_name=stats.team_name,
            avatar=owner.avatar if owner else None,
            stats=stats,
            roster=league_stats.split_roster_by_role(roster, snapshot.players)
        )
    except LeagueDataUnavailableError as e:
        raise _league_unavailable(e)
    except HTTPException:
        raise
    except Exception as e:
        raise _internal_error("TEAM_ERROR", "Failed to load team details",
                              {"league_id": league_id, "roster_id": roster_id}, e)


@app.get("/api/leagues/{league_id}/scorecard/{week}", response_model=ScorecardResponse, tags=["Matchups"])
async def get_weekly_scorecard(
    league_id: str,
    week: int = Path(..., ge=1, le=settings.MATCHUP_MAX_WEEK, description="Week number"),
    season: Optional[str] = Query(None, description="Season year (default: the starting league's season)"),
    resolver: HistoryResolver = Depends(get_history_resolver),
    reconciler: SeasonDataReconciler = Depends(get_season_data_reconciler),
    snapshot: ProcessSnapshot = Depends(get_snapshot)
):
    """Matchups for one week, grouped into games."""
    try:
        _, selected, season_league_id = await _select_season(league_id, season, resolver, snapshot)
        data = await reconciler.load_season_data(season_league_id, selected, snapshot.nfl_state)

        return ScorecardResponse(
            league_id=season_league_id,
            season=selected,
            week=week,
            available_weeks=league_stats.get_available_weeks(data.matchups),
            matchups=league_stats.get_weekly_scorecard(data.matchups, week, data.rosters, data.users)
        )
    except LeagueDataUnavailableError as e:
        raise _league_unavailable(e)
    except HTTPException:
        raise
    except Exception as e:
        raise _internal_error("SCORECARD_ERROR", "Failed to load weekly scorecard",
                              {"league_id": league_id, "week": week}, e)


@app.get("/api/leagues/{league_id}/players/{player_id}/history", response_model=PlayerHistoryResponse,
         tags=["Players"])
async def get_player_history(
    league_id: str,
    player_id: str,
    resolver: HistoryResolver = Depends(get_history_resolver),
    history_service: TransactionHistoryService = Depends(get_transaction_history_service),
    snapshot: ProcessSnapshot = Depends(get_snapshot)
):
    """
    Every transaction that moved a player across the league's history, oldest first.
    """
    try:
        seasons_map = await resolver.resolve_season_league_map(league_id, snapshot.nfl_state.season)
        events = await history_service.build_player_history(player_id, seasons_map, snapshot.players)

        player = snapshot.players.get(player_id)
        return PlayerHistoryResponse(
            league_id=league_id,
            player_id=player_id,
            player_name=get_player_name(player) if player else f"Player {player_id}",
            transactions=events,
            total_count=len(events)
        )
    except Exception as e:
        raise _internal_error("PLAYER_HISTORY_ERROR", "Failed to load player transaction history",
                              {"league_id": league_id, "player_id": player_id}, e)


@app.delete("/api/leagues/{league_id}/cache", response_model=CacheClearResponse, tags=["Cache"])
async def clear_league_cache(
    league_id: str,
    resolver: HistoryResolver = Depends(get_history_resolver),
    cache_service: SeasonCacheService = Depends(get_season_cache_service),
    snapshot: ProcessSnapshot = Depends(get_snapshot)
):
    """Remove cached season data for every league in a league's history."""
    try:
        seasons_map = await resolver.resolve_season_league_map(league_id, snapshot.nfl_state.season)
        league_ids = sorted(set(seasons_map.values()))
        keys_deleted = sum(cache_service.clear_league(lid) for lid in league_ids)

        logger.info(f"Cleared {keys_deleted} cached entries across {len(league_ids)} leagues for {league_id}")
        return CacheClearResponse(league_id=league_id, league_ids=league_ids, keys_deleted=keys_deleted)
    except Exception as e:
        raise _internal_error("CACHE_CLEAR_ERROR", "Failed to clear league cache", {"league_id": league_id}, e)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "backend.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower()
    )
