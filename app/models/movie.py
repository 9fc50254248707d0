from pydantic import BaseModel
from typing import List, Optional

class MovieOut(BaseModel):
    id: str
    title: str
    genre: str
    rating: float | int
    image: str
    featured: bool
    description: str
    year: Optional[int] = None
    trailerUrl: str

class MoviePage(BaseModel):
    page: int
    pageSize: int
    total: int
    totalPages: int
    items: List[MovieOut]

class DeleteResponse(BaseModel):
    message: str
    id: str
