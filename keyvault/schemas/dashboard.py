from pydantic import BaseModel


class DashboardStats(BaseModel):
    total_keys: int = 0
    recently_used: int = 0
    expiring_soon: int = 0
