import logging
from typing import List, Optional

import requests
from pydantic import BaseModel

from settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_AUTHOR = "Alentejo Bites Team"
DEFAULT_DATE = "Jan 01, 2026"
DEFAULT_CATEGORY = "Journal"
DEFAULT_IMAGE = "https://images.unsplash.com/photo-1517248135467-4c7edcad34c4?w=800&h=600&fit=crop"

POSTS_QUERY = """*[_type == "post" && defined(postId)] | order(publishedAt desc){
  postId,
  title,
  excerpt,
  "body": pt::text(body),
  "author": coalesce(author->name, "Alentejo Bites Team"),
  "date": coalesce(date, string(publishedAt)[0..9]),
  "category": coalesce(category->title, "Journal"),
  "image": coalesce(mainImage.asset->url, "")
}"""


class BlogPost(BaseModel):
    id: int
    title: str
    excerpt: str
    paragraphs: List[str]
    author: str
    date: str
    category: str
    image: str


def _post(id, title, excerpt, body, author, date, category, image):
    return BlogPost(id=id, title=title, excerpt=excerpt, paragraphs=split_paragraphs(body),
                    author=author, date=date, category=category, image=image)


def split_paragraphs(body: Optional[str]) -> List[str]:
    if not body:
        return ["Content coming soon."]
    return [p.strip() for p in body.split("\n\n") if p.strip()]


STATIC_POSTS = [
    _post(1, "5 Secret Wine Spots in Alentejo",
          "Forget the big commercial wineries. Here's where the locals go to drink talha wine "
          "straight from the clay pot.",
          "Alentejo is famous for its vast vineyards, but the real magic happens in the small adegas.\n\n"
          "In this guide we take you off the beaten path to discover Vinho de Talha, an ancient Roman "
          "tradition of making wine in large clay pots that has survived in Alentejo for over 2,000 years.",
          "Felippe Santos", "Jan 12, 2026", "Wine & Drink",
          "https://images.unsplash.com/photo-1510812431401-41d2bd2722f3?w=800&h=600&fit=crop"),
    _post(101, "Meet Maria: Born in the Vineyards",
          "Our wine specialist Maria shares how growing up in Reguengos shaped her palate and why "
          "Talha wine is more than just a drink.",
          "Growing up, the harvest wasn't just work; it was a festival. I remember the smell of the "
          "crushed grapes...",
          "Maria Costa", "Jan 10, 2026", "Team Stories",
          "https://images.unsplash.com/photo-1544005313-94ddf0286df2?w=800&h=600&fit=crop"),
    _post(2, "Why Évora is the Capital of Culture 2027",
          "The city is buzzing with preparation. From restored heritage sites to new art "
          "installations, see what's changing.",
          "Évora has always been a museum city, but 2027 marks a new era...",
          "Maria Costa", "Jan 05, 2026", "Culture",
          "https://images.unsplash.com/photo-1590076215667-875d4e0ce5a0?w=800&h=600&fit=crop"),
    _post(102, "Meet João: The History Geek",
          "João can talk for hours about the Temple of Diana. Find out why he traded an academic "
          "career for the streets of Évora.",
          "History books are great, but the stones of Évora speak louder.",
          "João Silva", "Jan 02, 2026", "Team Stories",
          "https://images.unsplash.com/photo-1507003211169-0a1dd7228f2d?w=800&h=600&fit=crop"),
    _post(3, "Bifana: The Story Behind the Sandwich",
          "It looks simple, but the bifana is a religion in Portugal. We trace the history of the "
          "country's favorite pork sandwich.",
          "Garlic, wine, paprika, and pork. The four pillars of happiness...",
          "Felippe Santos", "Dec 28, 2025", "Food History",
          "https://images.unsplash.com/photo-1627308595229-7830a5c91f9f?w=800&h=600&fit=crop"),
    _post(103, "Meet Ana: From Chef to Guide",
          "Why Ana left a professional kitchen to walk the markets of Évora with our guests.",
          "In a restaurant, I was hidden away. I missed the look on people's faces when they taste "
          "something new...",
          "Ana Ferreira", "Dec 20, 2025", "Team Stories",
          "https://images.unsplash.com/photo-1589156280159-27698a70f29e?w=800&h=600&fit=crop"),
    _post(4, "A Guide to Portuguese Cheese",
          "Queijo de Ovelha, Nisa, Serpa. Confused by the cheese counter? Here is your cheat sheet "
          "to Alentejo cheese.",
          "Cheese in Alentejo is intense, salty, and often runny...",
          "Maria Costa", "Nov 30, 2025", "Food History",
          "https://images.unsplash.com/photo-1486297678162-eb2a19b0a32d?w=800&h=600&fit=crop"),
    _post(5, "Sweet Truths: Conventual Desserts",
          "Why do all Portuguese desserts use egg yolks? The answer lies in the convents and "
          "monasteries of the 15th century.",
          "It started with egg whites being used to starch nun's habits...",
          "Felippe Santos", "Dec 15, 2025", "Food History",
          "https://images.unsplash.com/photo-1559339352-11d035aa65de?w=800&h=600&fit=crop"),
]


def query_url(settings: Settings) -> str:
    return (f"https://{settings.SANITY_PROJECT_ID}.api.sanity.io/v{settings.SANITY_API_VERSION}"
            f"/data/query/{settings.SANITY_DATASET}")


def normalize_record(record) -> Optional[BlogPost]:
    if not isinstance(record, dict):
        return None
    if not (record.get("postId") and record.get("title") and record.get("excerpt")):
        return None
    try:
        post_id = int(record["postId"])
    except (TypeError, ValueError):
        logger.warning("Skipping post with unusable postId %r", record["postId"])
        return None
    return _post(
        post_id,
        record["title"],
        record["excerpt"],
        record.get("body"),
        record.get("author") or DEFAULT_AUTHOR,
        record.get("date") or DEFAULT_DATE,
        record.get("category") or DEFAULT_CATEGORY,
        record.get("image") or DEFAULT_IMAGE,
    )


def fetch_blog_posts(settings: Settings) -> List[BlogPost]:
    """Posts from the content API, or the static list when it is off or failing."""
    if not settings.SANITY_PROJECT_ID:
        return STATIC_POSTS

    try:
        response = requests.get(
            query_url(settings),
            params={"query": POSTS_QUERY},
            timeout=settings.CONTENT_API_TIMEOUT,
        )
        if not response.ok:
            logger.warning("Content API returned %s, using static posts", response.status_code)
            return STATIC_POSTS
        payload = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("Content API unreachable, using static posts: %s", e)
        return STATIC_POSTS

    records = payload.get("result") if isinstance(payload, dict) else None
    if not isinstance(records, list):
        logger.warning("Content API payload has no result list, using static posts")
        return STATIC_POSTS

    posts = [post for post in map(normalize_record, records) if post is not None]
    return posts or STATIC_POSTS


def find_post(posts: List[BlogPost], post_id: int) -> Optional[BlogPost]:
    return next((post for post in posts if post.id == post_id), None)
