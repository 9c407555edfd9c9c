from pydantic import BaseModel
from typing import List


class ContactPage(BaseModel):
    store_name: str
    tagline: str
    address_lines: List[str]
    email: str
    hours: str
    services: List[str]
    highlights: List[str]


class AboutPage(BaseModel):
    store_name: str
    tagline: str
    highlights: List[str]
    services: List[str]
