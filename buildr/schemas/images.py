from pydantic import BaseModel


class ImageCredit(BaseModel):
    name: str
    url: str | None = None


class ImageResult(BaseModel):
    id: str
    url: str
    thumbnail: str
    alt: str
    credit: ImageCredit | None = None
    width: int
    height: int


class ImageSearchResponse(BaseModel):
    photos: list[ImageResult]
    source: str


class VideoResult(BaseModel):
    id: str
    url: str
    poster: str
    width: int
    height: int
    credit: ImageCredit | None = None


class VideoSearchResponse(BaseModel):
    videos: list[VideoResult]
    source: str


class ImageBatchRequest(BaseModel):
    queries: list[str]


class ImageBatchResponse(BaseModel):
    results: dict[str, list[ImageResult]]
    source: str
