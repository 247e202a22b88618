"""
FastAPI dependencies
"""
from fastapi import Query


async def get_current_user_id(
    user_id: int = Query(..., gt=0, description="Authenticated user ID, resolved by the auth layer"),
) -> int:
    return user_id
