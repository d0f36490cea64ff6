"""
Engine error -> HTTP translation

Routes catch BracketError and re-raise what http_error() returns:
- InvalidInputError                   -> 400
- WorldCup/Tournament/Match not found -> 404
- Tournament completed / match over   -> 409
- Winner not in the match             -> 422
"""

from fastapi import HTTPException

from worldcup.services.errors import (
    BracketError,
    InvalidInputError,
    InvalidWinnerError,
    MatchAlreadyResolvedError,
    MatchNotFoundError,
    TournamentAlreadyCompletedError,
    TournamentNotFoundError,
    WorldCupNotFoundError,
)


def http_error(e: BracketError) -> HTTPException:
    """Map an engine failure to the HTTPException the API returns for it."""
    if isinstance(e, (WorldCupNotFoundError, TournamentNotFoundError, MatchNotFoundError)):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, TournamentAlreadyCompletedError):
        return HTTPException(status_code=409, detail="Tournament already completed")
    if isinstance(e, MatchAlreadyResolvedError):
        return HTTPException(status_code=409, detail="This match is already over")
    if isinstance(e, InvalidWinnerError):
        return HTTPException(status_code=422, detail=str(e))
    if isinstance(e, InvalidInputError):
        return HTTPException(status_code=400, detail=str(e))
    return HTTPException(status_code=500, detail=f"Bracket engine failure: {str(e)}")
