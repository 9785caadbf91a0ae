from pydantic import BaseModel


class DeleteResponse(BaseModel):
    status: str
    id: str


class HealthResponse(BaseModel):
    status: str
    version: str
    documents: int
