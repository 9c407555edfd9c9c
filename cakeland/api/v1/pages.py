from fastapi import APIRouter

from cakeland.core.config import settings
from cakeland.schemas.page import AboutPage, ContactPage
from cakeland.utils.response import success

router = APIRouter()


@router.get("/contact", response_model=dict)
def contact_page():
    page = ContactPage(
        store_name=settings.STORE_NAME,
        tagline=settings.STORE_TAGLINE,
        address_lines=settings.STORE_ADDRESS_LINES,
        email=settings.STORE_EMAIL,
        hours=settings.STORE_HOURS,
        services=settings.STORE_SERVICES,
        highlights=settings.STORE_HIGHLIGHTS,
    )
    return success(data=page, message="Contact information")


@router.get("/about", response_model=dict)
def about_page():
    page = AboutPage(
        store_name=settings.STORE_NAME,
        tagline=settings.STORE_TAGLINE,
        highlights=settings.STORE_HIGHLIGHTS,
        services=settings.STORE_SERVICES,
    )
    return success(data=page, message="About us")
