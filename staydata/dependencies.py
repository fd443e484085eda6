from typing import Annotated

from fastapi import Depends, Request

from staydata.services.base import ListingClient


def get_listing_client(request: Request) -> ListingClient:
    return request.app.state.listing_client


ListingClientDep = Annotated[ListingClient, Depends(get_listing_client)]
