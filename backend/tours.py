from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from settings import Settings


class Tour(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    tagline: str
    description: str
    price: int
    regular_price: int
    image: str
    time: str
    duration: str
    page: str
    checkout_url: str
    badges: List[str] = []
    flexible_schedule: bool = False
    max_capacity: int


def build_tours(settings: Settings) -> Dict[str, Tour]:
    tours = [
        Tour(
            id="evening",
            title="The Évora Evening Bites",
            tagline="Discover Évora, one bite at a time",
            description="Explore Évora by night on a relaxed walking dinner tour, "
                        "tasting local cheeses, cured hams, bifana, traditional "
                        "Alentejo plates and a sweet convent dessert, all paired "
                        "with regional wines.",
            price=59,
            regular_price=69,
            image="https://images.unsplash.com/photo-1555939594-58d7cb561ad1?auto=format&fit=crop&w=800&q=80",
            time="5:00 PM - 8:00 PM",
            duration="3 Hours",
            page="evening-tour",
            checkout_url=settings.CHECKOUT_URL_EVENING,
            badges=["Most Popular"],
            flexible_schedule=True,
            max_capacity=12,
        ),
        Tour(
            id="brunch",
            title="The Morning Bites",
            tagline="Morning traditions & market flavors",
            description="Start your day in Évora with a guided food & wine brunch "
                        "walk, tasting local pastries, bifana, regional cheeses, "
                        "traditional Alentejo plates and a dessert finale at a "
                        "comfortable pace.",
            price=49,
            regular_price=59,
            image="https://images.unsplash.com/photo-1517248135467-4c7edcad34c4?auto=format&fit=crop&w=800&q=80",
            time="10:00 AM - 1:00 PM",
            duration="3 Hours",
            page="brunch-tour",
            checkout_url=settings.CHECKOUT_URL_BRUNCH,
            flexible_schedule=True,
            max_capacity=10,
        ),
    ]
    return {tour.id: tour for tour in tours}


def find_tour(tours: Dict[str, Tour], tour_id: str) -> Optional[Tour]:
    return tours.get(tour_id)
