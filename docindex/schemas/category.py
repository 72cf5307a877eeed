from pydantic import BaseModel, ConfigDict


class CategoryOut(BaseModel):
    id: str
    name: str
    slug: str
    description: str = ""
    icon: str = ""
    color: str = ""
    sort_order: int = 0
    document_count: int = 0

    model_config = ConfigDict(from_attributes=True)
