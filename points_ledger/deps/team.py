from fastapi import Header, HTTPException, Query


def get_active_team(
    team_query: str | None = Query(default=None, alias="team"),
    x_team: str | None = Header(default=None, alias="X-Team"),
) -> str:
    active = (x_team or team_query or "").strip()
    if not active:
        raise HTTPException(
            status_code=400,
            detail="Missing team context. Provide X-Team header or team query param.",
        )
    return active
