from pydantic import BaseModel, Field


class Config(BaseModel):
    base_url: str
    start_tasks_immediately: bool = True
    timeout: float = Field(default=30.0, gt=0)
    max_workers: int = Field(default=8, ge=1)
    follow_redirects: bool = True
